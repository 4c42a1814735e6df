from abc import ABC, abstractmethod
from typing import Dict, List


class ITrackingRepository(ABC):
    @abstractmethod
    def append(self, event: Dict) -> None:
        pass

    @abstractmethod
    def list_for_order(self, order_id: int) -> List:
        pass
