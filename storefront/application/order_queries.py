from typing import List, Optional

from storefront.domain.errors import OrderNotFoundError
from storefront.interfaces.IEmailLogRepository import IEmailLogRepository
from storefront.interfaces.IOrderRepository import IOrderRepository
from storefront.interfaces.ITrackingRepository import ITrackingRepository


class OrderQueries:
    """Read side of the admin back-office: dashboard listing, order detail, export."""

    def __init__(self, order_repo: IOrderRepository, email_logs: IEmailLogRepository,
                 tracking_repo: ITrackingRepository):
        self.order_repo = order_repo
        self.email_logs = email_logs
        self.tracking_repo = tracking_repo

    def order_details(self, order_id: int) -> dict:
        """Order row plus its history, tracking events and email attempts, newest first."""
        order = self.order_repo.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)

        return {
            "order": order.to_dict(),
            "history": [row.to_dict() for row in self.order_repo.history_for(order_id)],
            "tracking": [row.to_dict() for row in self.tracking_repo.list_for_order(order_id)],
            "emails": [row.to_dict() for row in self.email_logs.list_for_order(order_id)],
        }

    def list_orders(self, status: Optional[str] = None, payment: Optional[str] = None,
                    search: Optional[str] = None, limit: int = 100, offset: int = 0) -> dict:
        orders, count = self.order_repo.list_orders(
            status=status, payment=payment, search=search, limit=limit, offset=offset
        )
        return {
            "orders": [order.to_dict() for order in orders],
            "count": count,
            "stats": self.order_repo.stats(),
        }

    def export(self, order_ids: List[int]) -> dict:
        return {
            "success": True,
            "orders": [order.to_dict() for order in self.order_repo.get_many(order_ids)],
        }
