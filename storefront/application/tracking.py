"""
Courier tracking ingestion.

Shiprocket pushes scan events for every AWB. These drive the edges the
admin workflow never takes (shipped, out for delivery, delivered, RTO): an
event only moves an order forward in STATUS_PRIORITY, and every status it
does change is written to the audit history like an admin transition.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from storefront.domain import statuses
from storefront.domain.errors import ConcurrentModificationError
from storefront.domain.shipping import (
    TrackingUpdate,
    map_courier_status,
    parse_courier_date,
    parse_courier_datetime,
)
from storefront.interfaces.IOrderRepository import IOrderRepository
from storefront.interfaces.ITrackingRepository import ITrackingRepository

logger = logging.getLogger(__name__)

COURIER = "shiprocket"
RTO_REASON = "RTO - Return to Origin"
SHIPPED_EVENTS = {"SHIPPED", "PICKED UP"}


class TrackingIngestor:
    def __init__(self, order_repo: IOrderRepository, tracking_repo: ITrackingRepository,
                 webhook_token: Optional[str] = None):
        self.order_repo = order_repo
        self.tracking_repo = tracking_repo
        self.webhook_token = webhook_token

    def ingest(self, payload: dict, api_key: Optional[str] = None) -> dict:
        if self.webhook_token and api_key != self.webhook_token:
            # Acknowledge anyway so the courier stops retrying
            logger.warning("Invalid webhook token received; payload ignored")
            return {"received": True, "processed": False}

        update = TrackingUpdate.from_payload(payload)
        if not update.awb_code and not update.shiprocket_order_id:
            logger.info("No AWB or SR Order ID in webhook payload")
            return {"received": True}

        order = self.order_repo.find_by_shipment(update.awb_code, update.shiprocket_order_id)
        if order is None:
            logger.info(f"Order not found for webhook: awb={update.awb_code} sr_order_id={update.shiprocket_order_id}")
            return {"received": True, "found": False}

        previous_status = order.status
        event_text = (update.status_text or "").upper()
        event_time = parse_courier_datetime(update.timestamp) or datetime.now(timezone.utc)

        candidate = self._candidate_status(update, event_text)
        changes = {}

        if event_text in SHIPPED_EVENTS and not order.shipped_at:
            changes["shipped_at"] = event_time
        if update.etd:
            expected = parse_courier_date(update.etd)
            if expected:
                changes["expected_delivery"] = expected
        if update.courier_name:
            changes["courier_name"] = update.courier_name
        if update.is_return:
            changes["cancel_reason"] = RTO_REASON

        new_status = candidate if candidate and statuses.is_forward_move(order.status, candidate) else None
        if new_status == statuses.DELIVERED and not order.delivered_at:
            changes["delivered_at"] = event_time
        order = self._apply(order, new_status, changes, update, event_text)

        self.tracking_repo.append(self._tracking_event(order.id, update, event_text, event_time))

        logger.info(f"Order {order.order_number} tracking update: {previous_status} -> {order.status}")
        return {
            "received": True,
            "orderId": order.id,
            "orderNumber": order.order_number,
            "previousStatus": previous_status,
            "newStatus": order.status,
        }

    @staticmethod
    def _candidate_status(update: TrackingUpdate, event_text: str) -> Optional[str]:
        mapped = map_courier_status(update.status_id) if update.status_id is not None else None

        if update.is_return:
            return statuses.RTO_DELIVERED if mapped == statuses.RTO_DELIVERED else statuses.RTO_INITIATED
        if event_text == "DELIVERED":
            return statuses.DELIVERED
        if mapped in statuses.ORDER_STATUSES:
            return mapped
        # e.g. "undelivered": recorded as an event, order status untouched
        return None

    def _apply(self, order, new_status: Optional[str], changes: dict, update: TrackingUpdate, event_text: str):
        if new_status:
            try:
                return self.order_repo.transition(
                    order.id,
                    order.status,
                    changes=dict(changes, status=new_status),
                    history={
                        "order_number": order.order_number,
                        "old_status": order.status,
                        "new_status": new_status,
                        "changed_by": COURIER,
                        "change_reason": f"Courier update: {event_text or new_status}",
                        "meta": {"awb_code": update.awb_code, "status_id": update.status_id},
                    },
                )
            except ConcurrentModificationError:
                logger.warning(f"Order {order.order_number} changed while applying courier update; status left as is")

        if changes:
            return self.order_repo.update_fields(order.id, changes)
        return order

    @staticmethod
    def _tracking_event(order_id: int, update: TrackingUpdate, event_text: str, event_time: datetime) -> dict:
        status_code = str(update.status_id) if update.status_id is not None else None
        if update.scans:
            latest = update.scans[-1]
            return {
                "order_id": order_id,
                "awb_code": update.awb_code,
                "status": update.status_text,
                "status_code": status_code,
                "activity": latest.get("activity"),
                "location": latest.get("location"),
                "timestamp": parse_courier_datetime(latest.get("date")) or event_time,
                "raw_data": update.raw,
            }
        return {
            "order_id": order_id,
            "awb_code": update.awb_code,
            "status": update.status_text,
            "status_code": status_code,
            "activity": update.status_text or event_text,
            "location": None,
            "timestamp": event_time,
            "raw_data": update.raw,
        }
