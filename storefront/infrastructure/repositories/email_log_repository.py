from typing import Dict, List

from sqlalchemy import desc

from storefront.domain.models import EmailLog
from storefront.infrastructure.database import SessionLocal
from storefront.interfaces.IEmailLogRepository import IEmailLogRepository


class PostgresEmailLogRepository(IEmailLogRepository):

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    def append(self, entry: Dict) -> None:
        session = self.session_factory()
        try:
            session.add(EmailLog(**entry))
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def list_for_order(self, order_id: int) -> List[EmailLog]:
        session = self.session_factory()
        try:
            return (
                session.query(EmailLog)
                .filter(EmailLog.order_id == order_id)
                .order_by(desc(EmailLog.created_at), desc(EmailLog.id))
                .all()
            )
        finally:
            session.close()
