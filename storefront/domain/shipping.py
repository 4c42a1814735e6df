"""
Shipment booking contract between the order workflow and the courier
aggregator, plus the aggregator's status codes and date formats.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

import pytz

from storefront.domain import statuses

# Shiprocket reports times in Indian Standard Time
COURIER_TIMEZONE = pytz.timezone("Asia/Kolkata")

DEFAULT_PHONE = "9999999999"
DEFAULT_PINCODE = "000000"
DEFAULT_REGION = "Unknown"


@dataclass
class ShipmentItem:
    id: object
    name: str
    quantity: int
    price: float
    sku: str


@dataclass
class ShipmentRequest:
    order_id: int
    order_number: str
    customer_name: str
    customer_email: str
    customer_phone: str
    shipping_address: str
    shipping_city: str
    shipping_state: str
    shipping_pincode: str
    items: list[ShipmentItem]
    subtotal: float
    total: float
    payment_status: str

    @property
    def payment_method(self) -> str:
        return "Prepaid" if self.payment_status == statuses.PAYMENT_PAID else "COD"

    @classmethod
    def from_order(cls, order) -> "ShipmentRequest":
        items = [
            ShipmentItem(
                id=item.get("id"),
                name=item.get("name", ""),
                quantity=int(item.get("quantity", 1)),
                price=float(item.get("price", 0)),
                sku=item.get("sku") or f"SKU-{item.get('id')}",
            )
            for item in (order.items or [])
        ]
        total = float(order.total or 0)
        return cls(
            order_id=order.id,
            order_number=order.order_number,
            customer_name=order.customer_name,
            customer_email=order.customer_email,
            customer_phone=order.customer_phone or DEFAULT_PHONE,
            shipping_address=order.shipping_address,
            shipping_city=order.shipping_city or DEFAULT_REGION,
            shipping_state=order.shipping_state or DEFAULT_REGION,
            shipping_pincode=order.shipping_pincode or DEFAULT_PINCODE,
            items=items,
            subtotal=float(order.subtotal or 0) or total,
            total=total,
            payment_status=order.payment_status,
        )


@dataclass
class BookingResult:
    success: bool
    shiprocket_order_id: Optional[int] = None
    shipment_id: Optional[int] = None
    awb_code: Optional[str] = None
    courier_name: Optional[str] = None
    label_url: Optional[str] = None
    tracking_url: Optional[str] = None
    expected_delivery: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str) -> "BookingResult":
        return cls(success=False, error=error)

    def to_response(self) -> dict:
        return {
            "shiprocketOrderId": self.shiprocket_order_id,
            "shipmentId": self.shipment_id,
            "awbCode": self.awb_code,
            "courierName": self.courier_name,
            "labelUrl": self.label_url,
            "trackingUrl": self.tracking_url,
            "expectedDelivery": self.expected_delivery,
        }


@dataclass
class TrackingUpdate:
    """Normalised courier webhook payload."""
    awb_code: Optional[str]
    shiprocket_order_id: Optional[str]
    status_id: Optional[int]
    status_text: Optional[str]
    courier_name: Optional[str]
    timestamp: Optional[str]
    etd: Optional[str]
    is_return: bool
    scans: list = field(default_factory=list)
    raw: dict = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict) -> "TrackingUpdate":
        sr_order_id = payload.get("sr_order_id")
        return cls(
            awb_code=payload.get("awb") or None,
            shiprocket_order_id=str(sr_order_id) if sr_order_id else None,
            status_id=payload.get("current_status_id") or payload.get("shipment_status_id"),
            status_text=payload.get("current_status") or payload.get("shipment_status"),
            courier_name=payload.get("courier_name"),
            timestamp=payload.get("current_timestamp"),
            etd=payload.get("etd"),
            is_return=payload.get("is_return") == 1,
            scans=payload.get("scans") or [],
            raw=payload,
        )


# Shiprocket status id -> order status
SHIPROCKET_STATUS_MAP = {
    1: statuses.PROCESSING,         # AWB Assigned
    2: statuses.PROCESSING,         # Label Generated
    3: statuses.PROCESSING,         # Pickup Scheduled
    4: statuses.PROCESSING,         # Pickup Queued
    5: statuses.PROCESSING,         # Manifest Generated
    6: statuses.SHIPPED,            # Shipped
    7: statuses.DELIVERED,          # Delivered
    8: statuses.CANCELLED,          # Cancelled
    9: statuses.RTO_INITIATED,      # RTO Initiated
    10: statuses.RTO_DELIVERED,     # RTO Delivered
    17: statuses.OUT_FOR_DELIVERY,  # Out for Delivery
    18: statuses.SHIPPED,           # In Transit
    19: statuses.PROCESSING,        # Out for Pickup
    20: statuses.PROCESSING,        # Pickup Exception
    21: "undelivered",              # Undelivered
    38: statuses.SHIPPED,           # Reached Destination
    42: statuses.SHIPPED,           # Picked Up
}


def map_courier_status(status_id) -> str:
    try:
        return SHIPROCKET_STATUS_MAP.get(int(status_id), statuses.PROCESSING)
    except (TypeError, ValueError):
        return statuses.PROCESSING


_DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%d %m %Y %H:%M:%S",
    "%d-%m-%Y %H:%M:%S",
    "%Y-%m-%d",
)


def parse_courier_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse the aggregator's IST timestamps ("2023-05-23 11:43:52" or "23 05 2023 11:43:52")."""
    if not value:
        return None
    text = value.strip()
    for fmt in _DATETIME_FORMATS:
        try:
            naive = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return COURIER_TIMEZONE.localize(naive)
    return None


def parse_courier_date(value: Optional[str]) -> Optional[date]:
    parsed = parse_courier_datetime(value)
    return parsed.date() if parsed else None
