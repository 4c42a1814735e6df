from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple


class IOrderRepository(ABC):
    @abstractmethod
    def get(self, order_id: int):
        """Return the order or None."""

    @abstractmethod
    def get_many(self, order_ids: List[int]) -> List:
        pass

    @abstractmethod
    def find_by_shipment(self, awb_code: Optional[str], shiprocket_order_id: Optional[str]):
        pass

    @abstractmethod
    def transition(self, order_id: int, expected_status: str, changes: Dict, history: Dict):
        """
        Apply `changes` only if the order is still in `expected_status` and
        append the history entry in the same transaction. Returns the
        refreshed order; raises ConcurrentModificationError when the status
        moved underneath us.
        """

    @abstractmethod
    def update_fields(self, order_id: int, changes: Dict):
        """Non-status updates (courier metadata from the tracking webhook)."""

    @abstractmethod
    def history_for(self, order_id: int) -> List:
        pass

    @abstractmethod
    def list_orders(self, status: Optional[str] = None, payment: Optional[str] = None,
                    search: Optional[str] = None, limit: int = 100, offset: int = 0) -> Tuple[List, int]:
        pass

    @abstractmethod
    def stats(self) -> Dict[str, int]:
        pass
