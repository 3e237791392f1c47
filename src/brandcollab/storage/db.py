"""Engine and session handling.

Services open a unit of work with ``with db.session() as session:``; the
block commits on success and rolls back on any exception.
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from brandcollab.logging_config import get_logger
from brandcollab.settings import settings
from brandcollab.storage.models import Base

logger = get_logger(__name__)

MODEL_MODULES = (
    "brandcollab.admin.models",
    "brandcollab.auth.models",
    "brandcollab.campaign.models",
    "brandcollab.influencer.models",
    "brandcollab.notifications.models",
    "brandcollab.referral.models",
)


def load_models() -> None:
    """Register every table on ``Base.metadata`` (alembic and create_all need them)."""
    import importlib

    for module in MODEL_MODULES:
        importlib.import_module(module)


def build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True, pool_size=10, max_overflow=20)


class Database:
    def __init__(self, url: str | None = None):
        self.engine = build_engine(url or settings.database_url)
        self._factory = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)

    def bind(self, engine: Engine) -> None:
        """Swap the engine, e.g. for an in-memory database in tests."""
        self.engine = engine
        self._factory.configure(bind=engine)

    def create_tables(self) -> None:
        load_models()
        Base.metadata.create_all(bind=self.engine)
        logger.info("tables_ready", dialect=self.engine.dialect.name)

    def drop_tables(self) -> None:
        load_models()
        Base.metadata.drop_all(bind=self.engine)
        logger.warning("tables_dropped", dialect=self.engine.dialect.name)

    @contextmanager
    def session(self) -> Iterator[Session]:
        session = self._factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


db = Database()
