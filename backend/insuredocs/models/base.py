"""Base SQLAlchemy declarative base for all models"""

from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base


def utc_now() -> datetime:
    """Timezone-aware current time used for every created/updated column."""
    return datetime.now(timezone.utc)


Base = declarative_base()
