from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, Date, Numeric, JSON, ForeignKey
from storefront.infrastructure.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


def _money(value):
    return float(value) if value is not None else None


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(32), unique=True, nullable=False, index=True)
    status = Column(String(32), nullable=False, default="pending", index=True)
    payment_status = Column(String(16), nullable=False, default="pending")

    # Customer snapshot taken at checkout
    customer_name = Column(String, nullable=False)
    customer_email = Column(String, nullable=False)
    customer_phone = Column(String, nullable=True)
    shipping_address = Column(Text, nullable=False)
    shipping_city = Column(String, nullable=True)
    shipping_state = Column(String, nullable=True)
    shipping_pincode = Column(String(10), nullable=True)

    # [{"id", "name", "quantity", "price", "sku"?}] - never edited after checkout
    items = Column(JSON, nullable=False, default=list)

    subtotal = Column(Numeric(10, 2), nullable=False, default=0)
    shipping_cost = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False, default=0)

    # Fulfilment, filled once the order is handed to the courier
    shiprocket_order_id = Column(String, nullable=True, index=True)
    shiprocket_shipment_id = Column(String, nullable=True)
    courier_name = Column(String, nullable=True)
    awb_code = Column(String, nullable=True, index=True)
    label_url = Column(String, nullable=True)
    tracking_url = Column(String, nullable=True)
    expected_delivery = Column(Date, nullable=True)

    accepted_at = Column(DateTime(timezone=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    pickup_scheduled_at = Column(DateTime(timezone=True), nullable=True)
    dispatched_at = Column(DateTime(timezone=True), nullable=True)
    shipped_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    # Administrative
    admin_notes = Column(Text, nullable=True)
    reject_reason = Column(Text, nullable=True)
    cancel_reason = Column(Text, nullable=True)
    refund_status = Column(String(16), nullable=True)
    refund_amount = Column(Numeric(10, 2), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self):
        return {
            "id":                     self.id,
            "order_number":           self.order_number,
            "status":                 self.status,
            "payment_status":         self.payment_status,
            "customer_name":          self.customer_name,
            "customer_email":         self.customer_email,
            "customer_phone":         self.customer_phone,
            "shipping_address":       self.shipping_address,
            "shipping_city":          self.shipping_city,
            "shipping_state":         self.shipping_state,
            "shipping_pincode":       self.shipping_pincode,
            "items":                  self.items or [],
            "subtotal":               _money(self.subtotal),
            "shipping_cost":          _money(self.shipping_cost),
            "total":                  _money(self.total),
            "shiprocket_order_id":    self.shiprocket_order_id,
            "shiprocket_shipment_id": self.shiprocket_shipment_id,
            "courier_name":           self.courier_name,
            "awb_code":               self.awb_code,
            "label_url":              self.label_url,
            "tracking_url":           self.tracking_url,
            "expected_delivery":      _iso(self.expected_delivery),
            "accepted_at":            _iso(self.accepted_at),
            "rejected_at":            _iso(self.rejected_at),
            "pickup_scheduled_at":    _iso(self.pickup_scheduled_at),
            "dispatched_at":          _iso(self.dispatched_at),
            "shipped_at":             _iso(self.shipped_at),
            "delivered_at":           _iso(self.delivered_at),
            "admin_notes":            self.admin_notes,
            "reject_reason":          self.reject_reason,
            "cancel_reason":          self.cancel_reason,
            "refund_status":          self.refund_status,
            "refund_amount":          _money(self.refund_amount),
            "created_at":             _iso(self.created_at),
            "updated_at":             _iso(self.updated_at),
        }


class OrderStatusHistory(Base):
    """Append-only: one row per committed status change."""
    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    order_number = Column(String(32), nullable=True)
    old_status = Column(String(32), nullable=True)
    new_status = Column(String(32), nullable=False)
    changed_by = Column(String(32), nullable=False, default="admin")
    change_reason = Column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "order_id": self.order_id,
            "order_number": self.order_number,
            "old_status": self.old_status,
            "new_status": self.new_status,
            "changed_by": self.changed_by,
            "change_reason": self.change_reason,
            "metadata": self.meta or {},
            "created_at": _iso(self.created_at),
        }


class EmailLog(Base):
    """Append-only: one row per notification attempt, sent or failed."""
    __tablename__ = "email_logs"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    email_type = Column(String(32), nullable=False)
    recipient = Column(String, nullable=False)
    subject = Column(String, nullable=True)
    status = Column(String(16), nullable=False)  # sent, failed
    error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "order_id": self.order_id,
            "email_type": self.email_type,
            "recipient": self.recipient,
            "subject": self.subject,
            "status": self.status,
            "error": self.error,
            "created_at": _iso(self.created_at),
        }


class ShipmentTracking(Base):
    """Courier scan events received through the tracking webhook."""
    __tablename__ = "shipment_tracking"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    awb_code = Column(String, nullable=True)
    status = Column(String, nullable=True)
    status_code = Column(String(8), nullable=True)
    activity = Column(Text, nullable=True)
    location = Column(String, nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    raw_data = Column(JSON, nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "order_id": self.order_id,
            "awb_code": self.awb_code,
            "status": self.status,
            "status_code": self.status_code,
            "activity": self.activity,
            "location": self.location,
            "timestamp": _iso(self.timestamp),
            "raw_data": self.raw_data or {},
        }
