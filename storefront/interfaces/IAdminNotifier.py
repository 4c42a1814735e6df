from abc import ABC, abstractmethod
from typing import Optional


class IAdminNotifier(ABC):
    @abstractmethod
    def notify_status_change(self, order_number: str, old_status: Optional[str], new_status: str,
                             reason: Optional[str] = None) -> None:
        """Best-effort; implementations must not raise."""
