from abc import ABC, abstractmethod

from storefront.domain.shipping import BookingResult, ShipmentRequest


class IShippingService(ABC):
    @abstractmethod
    def book_shipment(self, request: ShipmentRequest) -> BookingResult:
        """Never raises: failures come back as BookingResult(success=False, error=...)."""
