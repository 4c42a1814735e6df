from abc import ABC, abstractmethod
from typing import Dict, List


class IEmailLogRepository(ABC):
    @abstractmethod
    def append(self, entry: Dict) -> None:
        pass

    @abstractmethod
    def list_for_order(self, order_id: int) -> List:
        pass
