from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.application.order_queries import OrderQueries
from storefront.application.order_workflow import OrderWorkflow
from storefront.application.tracking import TrackingIngestor
from storefront.domain.errors import EmailDeliveryError
from storefront.domain.models import EmailLog, Order, OrderStatusHistory
from storefront.domain.shipping import BookingResult
from storefront.infrastructure.database import Base
from storefront.infrastructure.repositories.email_log_repository import PostgresEmailLogRepository
from storefront.infrastructure.repositories.order_repository import PostgresOrderRepository
from storefront.infrastructure.repositories.tracking_repository import PostgresTrackingRepository
from storefront.infrastructure.state_manager import StateManager
from storefront.interfaces.IAdminNotifier import IAdminNotifier
from storefront.interfaces.IEmailSender import IEmailSender
from storefront.interfaces.IShippingService import IShippingService


def make_session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def seed_order(session_factory, order_id, status="pending", payment_status="paid", **overrides):
    values = dict(
        id=order_id,
        order_number=f"AK{1000 + order_id}",
        status=status,
        payment_status=payment_status,
        customer_name="Riya Sharma",
        customer_email="riya@example.com",
        customer_phone="+91 98765 43210",
        shipping_address="12 MG Road, Indiranagar",
        shipping_city="Bengaluru",
        shipping_state="Karnataka",
        shipping_pincode="560038",
        items=[{"id": 7, "name": "Goku Figure", "quantity": 2, "price": 1499.5}],
        subtotal=Decimal("2999.00"),
        shipping_cost=Decimal("0"),
        total=Decimal("2999.00"),
    )
    values.update(overrides)
    session = session_factory()
    try:
        session.add(Order(**values))
        session.commit()
    finally:
        session.close()


def count_rows(session_factory, model, order_id):
    session = session_factory()
    try:
        return session.query(model).filter(model.order_id == order_id).count()
    finally:
        session.close()


def history_rows(session_factory, order_id):
    session = session_factory()
    try:
        return session.query(OrderStatusHistory).filter(OrderStatusHistory.order_id == order_id).all()
    finally:
        session.close()


def email_rows(session_factory, order_id):
    session = session_factory()
    try:
        return session.query(EmailLog).filter(EmailLog.order_id == order_id).all()
    finally:
        session.close()


class FakeShipping(IShippingService):
    def __init__(self, result=None):
        self.result = result or BookingResult(
            success=True,
            shiprocket_order_id=555001,
            shipment_id=777001,
            awb_code="AWB123",
            courier_name="Delhivery Surface",
            label_url="https://labels.example.com/AWB123.pdf",
            tracking_url="https://shiprocket.co/tracking/AWB123",
            expected_delivery="2024-06-20 18:00:00",
        )
        self.requests = []

    def book_shipment(self, request):
        self.requests.append(request)
        return self.result


class FakeEmailSender(IEmailSender):
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def _record(self, kind, **details):
        if self.fail:
            raise EmailDeliveryError("Email provider returned 500: upstream down")
        self.sent.append((kind, details))
        return f"msg-{len(self.sent)}"

    def send_accepted_email(self, **details):
        return self._record("accepted", **details)

    def send_rejected_email(self, **details):
        return self._record("rejected", **details)

    def send_ready_to_dispatch_email(self, **details):
        return self._record("ready_to_dispatch", **details)


class FakeNotifier(IAdminNotifier):
    def __init__(self):
        self.calls = []

    def notify_status_change(self, order_number, old_status, new_status, reason=None):
        self.calls.append((order_number, old_status, new_status, reason))


class Harness:
    """Real repositories on in-memory SQLite, fake external collaborators."""

    def __init__(self, shipping=None, email_sender=None, order_repo_cls=PostgresOrderRepository,
                 webhook_token=None):
        self.session_factory = make_session_factory()
        self.order_repo = order_repo_cls(self.session_factory)
        self.email_logs = PostgresEmailLogRepository(self.session_factory)
        self.tracking_repo = PostgresTrackingRepository(self.session_factory)
        self.shipping = shipping or FakeShipping()
        self.email_sender = email_sender or FakeEmailSender()
        self.notifier = FakeNotifier()
        self.state = StateManager()

        self.workflow = OrderWorkflow(
            order_repo=self.order_repo,
            email_logs=self.email_logs,
            shipping=self.shipping,
            email_sender=self.email_sender,
            notifier=self.notifier,
            state=self.state,
            dispatch_lock_seconds=30,
        )
        self.queries = OrderQueries(self.order_repo, self.email_logs, self.tracking_repo)
        self.tracking = TrackingIngestor(self.order_repo, self.tracking_repo, webhook_token)

    def seed(self, order_id, **kwargs):
        seed_order(self.session_factory, order_id, **kwargs)

    def order(self, order_id):
        return self.order_repo.get(order_id)


def client_for(harness, raise_server_exceptions=True):
    """TestClient over a fresh app wired to the harness services (lifespan skipped)."""
    from fastapi.testclient import TestClient

    from storefront.main import create_app

    app = create_app(with_lifespan=False)
    app.state.workflow = harness.workflow
    app.state.queries = harness.queries
    app.state.tracking = harness.tracking
    return TestClient(app, raise_server_exceptions=raise_server_exceptions)
