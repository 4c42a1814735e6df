from typing import Dict, List

from sqlalchemy import desc

from storefront.domain.models import ShipmentTracking
from storefront.infrastructure.database import SessionLocal
from storefront.interfaces.ITrackingRepository import ITrackingRepository


class PostgresTrackingRepository(ITrackingRepository):

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    def append(self, event: Dict) -> None:
        session = self.session_factory()
        try:
            session.add(ShipmentTracking(**event))
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def list_for_order(self, order_id: int) -> List[ShipmentTracking]:
        """Scan events, latest courier timestamp first."""
        session = self.session_factory()
        try:
            return (
                session.query(ShipmentTracking)
                .filter(ShipmentTracking.order_id == order_id)
                .order_by(desc(ShipmentTracking.timestamp), desc(ShipmentTracking.id))
                .all()
            )
        finally:
            session.close()
