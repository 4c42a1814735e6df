"""
Admin order status workflow.

Each action runs in two phases:
  1. commit  - validate the current status, call the courier when needed,
               then apply the transition with a conditional update that also
               writes the audit-history row. Any failure here leaves the
               order untouched and is raised to the caller.
  2. notify  - customer email (recorded in email_logs, sent or failed) and
               the admin alert. Failures are logged and never raised.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from storefront.core.config import settings
from storefront.domain import emails, statuses
from storefront.domain.actions import AcceptAction, RejectAction, ReadyToDispatchAction, UpdateStatusAction
from storefront.domain.errors import (
    ConcurrentModificationError,
    DispatchInProgressError,
    InvalidInputError,
    InvalidTransitionError,
    OrderNotFoundError,
    ShipmentBookingError,
    WorkflowError,
)
from storefront.domain.shipping import ShipmentRequest, parse_courier_date
from storefront.infrastructure.state_manager import StateManager
from storefront.interfaces.IAdminNotifier import IAdminNotifier
from storefront.interfaces.IEmailLogRepository import IEmailLogRepository
from storefront.interfaces.IEmailSender import IEmailSender
from storefront.interfaces.IOrderRepository import IOrderRepository
from storefront.interfaces.IShippingService import IShippingService

logger = logging.getLogger(__name__)

ADMIN = "admin"


@dataclass
class ActionResult:
    message: str
    new_status: str
    shipping: Optional[dict] = None

    def to_response(self) -> dict:
        body = {"success": True, "message": self.message, "newStatus": self.new_status}
        if self.shipping is not None:
            body["shipping"] = self.shipping
        return body


def _now():
    return datetime.now(timezone.utc)


class OrderWorkflow:
    def __init__(self, order_repo: IOrderRepository, email_logs: IEmailLogRepository,
                 shipping: IShippingService, email_sender: IEmailSender, notifier: IAdminNotifier,
                 state: StateManager, dispatch_lock_seconds: int = settings.DISPATCH_LOCK_SECONDS):
        self.order_repo = order_repo
        self.email_logs = email_logs
        self.shipping = shipping
        self.email_sender = email_sender
        self.notifier = notifier  # Injected admin alert channel
        self.state = state
        self.dispatch_lock_seconds = dispatch_lock_seconds

        self._handlers = {
            AcceptAction: lambda order_id, a: self.accept(order_id, notes=a.notes),
            RejectAction: lambda order_id, a: self.reject(order_id, a.reason, notes=a.notes),
            ReadyToDispatchAction: lambda order_id, a: self.ready_to_dispatch(order_id, notes=a.notes),
            UpdateStatusAction: lambda order_id, a: self.update_status(
                order_id, a.new_status, reason=a.reason, notes=a.notes
            ),
        }

    def handle(self, order_id: int, action) -> ActionResult:
        logger.info(f"📋 Admin action: {action.action} for order ID: {order_id}")
        return self._handlers[type(action)](order_id, action)

    # --- ACTIONS ---

    def accept(self, order_id: int, notes: Optional[str] = None) -> ActionResult:
        order = self._load(order_id)
        old_status = order.status

        if old_status not in statuses.ACCEPTABLE_STATUSES:
            raise InvalidTransitionError(f"Cannot accept order with status: {old_status}", old_status)
        if order.payment_status not in statuses.ACCEPTABLE_PAYMENTS:
            raise InvalidTransitionError("Payment not confirmed", old_status)

        order = self.order_repo.transition(
            order_id,
            old_status,
            changes={
                "status": statuses.CONFIRMED,
                "accepted_at": _now(),
                "admin_notes": notes,
            },
            history=self._history(order, old_status, statuses.CONFIRMED,
                                  "Order accepted by admin", {"notes": notes}),
        )

        self._send_customer_email(order, emails.ORDER_ACCEPTED, lambda: self.email_sender.send_accepted_email(
            order_number=order.order_number,
            customer_name=order.customer_name,
            customer_email=order.customer_email,
            items=[
                {"name": item.get("name"), "quantity": item.get("quantity"), "price": item.get("price")}
                for item in (order.items or [])
            ],
            total=float(order.total or 0),
        ))
        self._notify_admin(order, old_status, "Order accepted by admin")

        return ActionResult("Order accepted successfully", statuses.CONFIRMED)

    def reject(self, order_id: int, reason: Optional[str], notes: Optional[str] = None) -> ActionResult:
        order = self._load(order_id)
        old_status = order.status

        if old_status in statuses.NON_REJECTABLE_STATUSES:
            raise InvalidTransitionError(f"Cannot reject order with status: {old_status}", old_status)
        if not reason or not reason.strip():
            raise InvalidInputError("Rejection reason is required")
        reason = reason.strip()

        changes = {
            "status": statuses.CANCELLED,
            "rejected_at": _now(),
            "reject_reason": reason,
            "cancel_reason": reason,
            "admin_notes": notes,
        }
        refund_info = None
        if order.payment_status == statuses.PAYMENT_PAID:
            changes["refund_status"] = "pending"
            changes["refund_amount"] = order.total
            refund_info = emails.REFUND_NOTE

        order = self.order_repo.transition(
            order_id,
            old_status,
            changes=changes,
            history=self._history(order, old_status, statuses.CANCELLED,
                                  f"Order rejected: {reason}", {"reason": reason, "notes": notes}),
        )

        self._send_customer_email(order, emails.ORDER_REJECTED, lambda: self.email_sender.send_rejected_email(
            order_number=order.order_number,
            customer_name=order.customer_name,
            customer_email=order.customer_email,
            reason=reason,
            refund_info=refund_info,
        ))
        self._notify_admin(order, old_status, f"Order rejected: {reason}")

        return ActionResult("Order rejected successfully", statuses.CANCELLED)

    def ready_to_dispatch(self, order_id: int, notes: Optional[str] = None) -> ActionResult:
        # Held for the whole booking so two admins cannot book the same order twice
        lock_key = f"order:{order_id}:dispatch"
        lock_token = self.state.acquire_lock(lock_key, self.dispatch_lock_seconds)
        if lock_token is None:
            raise DispatchInProgressError(order_id)

        try:
            order = self._load(order_id)
            old_status = order.status

            if old_status not in statuses.DISPATCHABLE_STATUSES:
                raise InvalidTransitionError(
                    f"Cannot dispatch order with status: {old_status}. Order must be confirmed first.",
                    old_status,
                )

            booking = self.shipping.book_shipment(ShipmentRequest.from_order(order))
            if not booking.success:
                logger.error(f"❌ RTD failed for order {order.order_number}: {booking.error}")
                raise ShipmentBookingError(booking.error or "Failed to process shipment")

            order = self._commit_dispatch(order, booking, notes)
        finally:
            self.state.release_lock(lock_key, lock_token)

        self._send_customer_email(order, emails.READY_TO_DISPATCH,
                                  lambda: self.email_sender.send_ready_to_dispatch_email(
                                      order_number=order.order_number,
                                      customer_name=order.customer_name,
                                      customer_email=order.customer_email,
                                      awb_code=booking.awb_code,
                                      courier_name=booking.courier_name,
                                      tracking_url=booking.tracking_url,
                                      expected_delivery=booking.expected_delivery,
                                  ))
        self._notify_admin(order, old_status, f"AWB {booking.awb_code} ({booking.courier_name})")

        return ActionResult("Order ready to dispatch", statuses.READY_TO_DISPATCH, shipping=booking.to_response())

    def update_status(self, order_id: int, new_status: Optional[str], reason: Optional[str] = None,
                      notes: Optional[str] = None) -> ActionResult:
        if not new_status:
            raise InvalidInputError("newStatus is required")
        if new_status not in statuses.ORDER_STATUSES:
            raise InvalidInputError(f"Unknown status: {new_status}")

        order = self._load(order_id)
        old_status = order.status
        change_reason = reason or f"Status updated to {new_status}"

        changes = {"status": new_status, "admin_notes": notes or order.admin_notes}
        if new_status == statuses.SHIPPED and not order.shipped_at:
            changes["shipped_at"] = _now()
        if new_status == statuses.DELIVERED and not order.delivered_at:
            changes["delivered_at"] = _now()

        history = self._history(order, old_status, new_status, change_reason, {"notes": notes})
        order = self.order_repo.transition(order_id, old_status, changes=changes, history=history)

        self._notify_admin(order, old_status, change_reason)
        return ActionResult(f"Order status updated to {new_status}", new_status)

    def bulk_update_status(self, order_ids: list, new_status: Optional[str]) -> dict:
        if not new_status:
            raise InvalidInputError("newStatus is required")
        if new_status not in statuses.ORDER_STATUSES:
            raise InvalidInputError(f"Unknown status: {new_status}")

        updated, failed = [], []
        for order_id in order_ids:
            try:
                self.update_status(order_id, new_status, reason="Bulk status update")
                updated.append(order_id)
            except WorkflowError as e:
                failed.append({"id": order_id, "error": e.message})

        return {
            "success": True,
            "message": f"{len(updated)} orders updated to {new_status}",
            "updated": updated,
            "failed": failed,
        }

    # --- HELPERS ---

    def _commit_dispatch(self, order, booking, notes: Optional[str]):
        now = _now()
        try:
            return self.order_repo.transition(
                order.id,
                order.status,
                changes={
                    "status": statuses.READY_TO_DISPATCH,
                    "shiprocket_order_id": _str_or_none(booking.shiprocket_order_id),
                    "shiprocket_shipment_id": _str_or_none(booking.shipment_id),
                    "awb_code": booking.awb_code,
                    "courier_name": booking.courier_name,
                    "label_url": booking.label_url,
                    "tracking_url": booking.tracking_url,
                    "expected_delivery": parse_courier_date(booking.expected_delivery),
                    "pickup_scheduled_at": now,
                    "dispatched_at": now,
                    "admin_notes": notes or order.admin_notes,
                },
                history=self._history(order, order.status, statuses.READY_TO_DISPATCH,
                                      "Order marked ready to dispatch", {
                                          "shiprocket_order_id": booking.shiprocket_order_id,
                                          "shipment_id": booking.shipment_id,
                                          "awb_code": booking.awb_code,
                                          "courier_name": booking.courier_name,
                                      }),
            )
        except ConcurrentModificationError:
            # The courier already holds this shipment; it has to be cancelled by hand
            logger.error(f"❌ Shipment {booking.awb_code} booked but order {order.order_number} changed concurrently")
            raise

    def _load(self, order_id: int):
        order = self.order_repo.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    @staticmethod
    def _history(order, old_status: str, new_status: str, reason: str, metadata: dict) -> dict:
        return {
            "order_number": order.order_number,
            "old_status": old_status,
            "new_status": new_status,
            "changed_by": ADMIN,
            "change_reason": reason,
            "meta": metadata,
        }

    def _send_customer_email(self, order, email_type: str, send: Callable[[], object]) -> None:
        entry = {
            "order_id": order.id,
            "email_type": email_type,
            "recipient": order.customer_email,
            "subject": emails.subject_for(email_type, order.order_number),
        }
        try:
            send()
            entry["status"] = "sent"
        except Exception as e:
            logger.exception(f"Failed to send {email_type} email for order {order.order_number}")
            entry["status"] = "failed"
            entry["error"] = str(e)

        try:
            self.email_logs.append(entry)
        except Exception:
            logger.exception(f"Failed to record {email_type} email log for order {order.order_number}")

    def _notify_admin(self, order, old_status: str, reason: Optional[str]) -> None:
        try:
            self.notifier.notify_status_change(order.order_number, old_status, order.status, reason)
        except Exception:
            logger.exception(f"Admin alert failed for order {order.order_number}")


def _str_or_none(value) -> Optional[str]:
    return str(value) if value is not None else None
