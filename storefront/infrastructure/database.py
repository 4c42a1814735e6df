import logging
import time

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import declarative_base, sessionmaker

from storefront.core.config import settings

logger = logging.getLogger(__name__)

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
Base = declarative_base()


def wait_for_database(retries: int = settings.DB_CONNECT_RETRIES, wait_seconds: int = settings.DB_CONNECT_WAIT_SECONDS) -> bool:
    """Create the tables, retrying while the database container comes up."""
    # models must be imported so their tables are registered on Base
    from storefront.domain import models  # noqa: F401

    for attempt in range(retries):
        try:
            logger.info(f"🔄 Attempting DB connection ({attempt + 1}/{retries})...")
            Base.metadata.create_all(bind=engine)
            logger.info("✅ DB Connected and Tables Created.")
            return True
        except OperationalError:
            logger.warning(f"⚠️ DB not ready yet. Waiting {wait_seconds}s...")
            time.sleep(wait_seconds)

    logger.error("❌ Could not connect to DB after retries.")
    return False
