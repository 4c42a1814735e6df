from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class IEmailSender(ABC):
    """Customer emails. Every method raises EmailDeliveryError on failure."""

    @abstractmethod
    def send_accepted_email(self, order_number: str, customer_name: str, customer_email: str,
                            items: List[Dict[str, Any]], total: float) -> Optional[str]:
        pass

    @abstractmethod
    def send_rejected_email(self, order_number: str, customer_name: str, customer_email: str,
                            reason: str, refund_info: Optional[str] = None) -> Optional[str]:
        pass

    @abstractmethod
    def send_ready_to_dispatch_email(self, order_number: str, customer_name: str, customer_email: str,
                                     awb_code: str, courier_name: str, tracking_url: Optional[str] = None,
                                     expected_delivery: Optional[str] = None) -> Optional[str]:
        pass
