from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine
from coupon_system.core.config import settings

def build_engine(database_url: str = None, busy_timeout: float = None) -> Engine:
    database_url = database_url or settings.DATABASE_URL
    if busy_timeout is None:
        busy_timeout = settings.DB_BUSY_TIMEOUT_SECONDS

    # SQLite only: sessions are shared across worker threads.
    # timeout makes concurrent writers wait for the lock.
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": busy_timeout}
    return create_engine(database_url, connect_args=connect_args)


engine = build_engine()

def create_db_and_tables(target_engine: Engine = None):
    # Registers the tables with SQLModel metadata
    import coupon_system.models  # noqa: F401

    SQLModel.metadata.create_all(target_engine or engine)
