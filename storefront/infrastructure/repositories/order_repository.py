import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy import desc, or_
from sqlalchemy.exc import SQLAlchemyError

from storefront.domain import statuses
from storefront.domain.errors import ConcurrentModificationError, OrderNotFoundError
from storefront.domain.models import Order, OrderStatusHistory
from storefront.infrastructure.database import SessionLocal
from storefront.interfaces.IOrderRepository import IOrderRepository

logger = logging.getLogger(__name__)


class PostgresOrderRepository(IOrderRepository):

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    def get(self, order_id: int) -> Optional[Order]:
        session = self.session_factory()
        try:
            return session.get(Order, order_id)
        finally:
            session.close()

    def get_many(self, order_ids: List[int]) -> List[Order]:
        if not order_ids:
            return []
        session = self.session_factory()
        try:
            return session.query(Order).filter(Order.id.in_(order_ids)).order_by(Order.id).all()
        finally:
            session.close()

    def find_by_shipment(self, awb_code: Optional[str], shiprocket_order_id: Optional[str]) -> Optional[Order]:
        session = self.session_factory()
        try:
            query = session.query(Order)
            if awb_code:
                query = query.filter(Order.awb_code == awb_code)
            elif shiprocket_order_id:
                query = query.filter(Order.shiprocket_order_id == shiprocket_order_id)
            else:
                return None
            return query.first()
        finally:
            session.close()

    def transition(self, order_id: int, expected_status: str, changes: Dict, history: Dict) -> Order:
        session = self.session_factory()
        try:
            values = dict(changes)
            values["updated_at"] = datetime.now(timezone.utc)

            # Compare-and-swap on the status we validated against
            updated = (
                session.query(Order)
                .filter(Order.id == order_id, Order.status == expected_status)
                .update(values, synchronize_session=False)
            )
            if updated != 1:
                session.rollback()
                raise ConcurrentModificationError(order_id, expected_status)

            session.add(OrderStatusHistory(order_id=order_id, **history))
            session.commit()
            return session.get(Order, order_id)
        except SQLAlchemyError as e:
            logger.error(f"❌ DB Error while transitioning order {order_id}: {e}")
            session.rollback()
            raise
        finally:
            session.close()

    def update_fields(self, order_id: int, changes: Dict) -> Order:
        session = self.session_factory()
        try:
            order = session.get(Order, order_id)
            if order is None:
                raise OrderNotFoundError(order_id)
            for key, value in changes.items():
                setattr(order, key, value)
            order.updated_at = datetime.now(timezone.utc)
            session.commit()
            return order
        except SQLAlchemyError as e:
            logger.error(f"❌ DB Error while updating order {order_id}: {e}")
            session.rollback()
            raise
        finally:
            session.close()

    def history_for(self, order_id: int) -> List[OrderStatusHistory]:
        session = self.session_factory()
        try:
            return (
                session.query(OrderStatusHistory)
                .filter(OrderStatusHistory.order_id == order_id)
                .order_by(desc(OrderStatusHistory.created_at), desc(OrderStatusHistory.id))
                .all()
            )
        finally:
            session.close()

    def list_orders(self, status: Optional[str] = None, payment: Optional[str] = None,
                    search: Optional[str] = None, limit: int = 100, offset: int = 0) -> Tuple[List[Order], int]:
        """
        Retrieves orders for the admin dashboard, newest first.
        `status` accepts either a group name (pending, processing, shipped, cancelled) or an exact status.
        """
        session = self.session_factory()
        try:
            query = session.query(Order)

            if status and status != "all":
                group = statuses.STATUS_GROUPS.get(status)
                if group:
                    query = query.filter(Order.status.in_(group))
                else:
                    query = query.filter(Order.status == status)

            if payment and payment != "all":
                query = query.filter(Order.payment_status == payment)

            if search:
                pattern = f"%{search}%"
                query = query.filter(or_(
                    Order.order_number.ilike(pattern),
                    Order.customer_name.ilike(pattern),
                    Order.customer_email.ilike(pattern),
                    Order.awb_code.ilike(pattern),
                ))

            count = query.count()
            orders = (
                query.order_by(desc(Order.created_at), desc(Order.id))
                .offset(offset)
                .limit(limit)
                .all()
            )
            return orders, count
        finally:
            session.close()

    def stats(self) -> Dict[str, int]:
        session = self.session_factory()
        try:
            rows = session.query(Order.status, Order.payment_status).all()
        finally:
            session.close()

        def count(*wanted):
            return sum(1 for status, _ in rows if status in wanted)

        return {
            "total": len(rows),
            "pending": count(*statuses.STATUS_GROUPS["pending"]),
            "confirmed": count(statuses.CONFIRMED),
            "processing": count(statuses.PROCESSING, statuses.READY_TO_DISPATCH),
            "shipped": count(*statuses.STATUS_GROUPS["shipped"]),
            "delivered": count(statuses.DELIVERED),
            "cancelled": count(*statuses.STATUS_GROUPS["cancelled"]),
            "paid": sum(1 for _, payment in rows if payment == statuses.PAYMENT_PAID),
        }
