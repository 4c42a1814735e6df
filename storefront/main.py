import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from storefront.core.config import settings

# 1. Infrastructure & Application Imports
from storefront.application.order_queries import OrderQueries
from storefront.application.order_workflow import OrderWorkflow
from storefront.application.tracking import TrackingIngestor
from storefront.infrastructure.database import wait_for_database
from storefront.infrastructure.email_service import ResendEmailService
from storefront.infrastructure.notification_service import NotificationService
from storefront.infrastructure.repositories.email_log_repository import PostgresEmailLogRepository
from storefront.infrastructure.repositories.order_repository import PostgresOrderRepository
from storefront.infrastructure.repositories.tracking_repository import PostgresTrackingRepository
from storefront.infrastructure.shiprocket_service import ShiprocketService
from storefront.infrastructure.state_manager import StateManager
from storefront.interfaces import admin_orders, shiprocket_webhook
from storefront.interfaces.error_handlers import register_error_handlers

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------
# COMPOSITION ROOT
# ---------------------------------------------------------
def build_services(app: FastAPI) -> None:
    state = StateManager(settings.REDIS_URL)
    order_repo = PostgresOrderRepository()
    email_logs = PostgresEmailLogRepository()
    tracking_repo = PostgresTrackingRepository()

    shipping = ShiprocketService(
        state=state,
        base_url=settings.SHIPROCKET_BASE_URL,
        email=settings.SHIPROCKET_EMAIL,
        password=settings.SHIPROCKET_PASSWORD,
        timeout=settings.SHIPROCKET_TIMEOUT_SECONDS,
    )
    email_sender = ResendEmailService(
        api_key=settings.RESEND_API_KEY,
        from_email=settings.RESEND_FROM_EMAIL,
        base_url=settings.RESEND_BASE_URL,
        site_url=settings.SITE_URL,
        timeout=settings.RESEND_TIMEOUT_SECONDS,
    )

    app.state.workflow = OrderWorkflow(
        order_repo=order_repo,
        email_logs=email_logs,
        shipping=shipping,
        email_sender=email_sender,
        notifier=NotificationService(),
        state=state,
        dispatch_lock_seconds=settings.DISPATCH_LOCK_SECONDS,
    )
    app.state.queries = OrderQueries(order_repo, email_logs, tracking_repo)
    app.state.tracking = TrackingIngestor(order_repo, tracking_repo, settings.SHIPROCKET_WEBHOOK_TOKEN)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not wait_for_database():
        # The app still starts; DB-backed routes will fail until the database is reachable
        logger.error("❌ Starting without a verified database connection.")
    build_services(app)
    yield


def create_app(with_lifespan: bool = True) -> FastAPI:
    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan if with_lifespan else None)

    register_error_handlers(app)

    # Include Routers
    app.include_router(admin_orders.router)
    app.include_router(shiprocket_webhook.router)

    @app.get("/")
    def health_check():
        status = "active" if hasattr(app.state, "workflow") else "degraded"
        return {"status": status, "system": settings.PROJECT_NAME}

    return app


app = create_app()
