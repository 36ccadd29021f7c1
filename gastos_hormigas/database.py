from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel, create_engine, Session

from .config import settings


def enable_sqlite_foreign_keys(target: Engine) -> None:
    """Turn on FK enforcement so ON DELETE CASCADE works on SQLite."""

    @event.listens_for(target, "connect")
    def _set_sqlite_pragma(dbapi_conn, _record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


if settings.database_url.startswith("sqlite"):
    engine = create_engine(
        settings.database_url,
        echo=settings.database_echo,
        connect_args={"check_same_thread": False, "timeout": 60},
        poolclass=NullPool,  # avoid multiple pooled connections holding write locks
    )
    enable_sqlite_foreign_keys(engine)
    # Configure SQLite pragmas to reduce locking
    try:
        with engine.connect() as conn:
            conn.exec_driver_sql("PRAGMA journal_mode=WAL;")
            conn.exec_driver_sql("PRAGMA busy_timeout=60000;")
    except OperationalError:
        # If the database is momentarily locked (e.g., during reloader startup), continue without failing.
        pass
else:
    engine = create_engine(
        settings.database_url,
        echo=settings.database_echo,
    )


def get_session():
    with Session(engine) as session:
        yield session


def import_models() -> None:
    from .models import (  # noqa: F401
        auth,
        user,
        category,
        expense,
        fixed_expense,
        financials,
        income,
        savings_goal,
        asset,
        liability,
    )


def init_db(target: Engine = engine) -> None:
    import_models()
    SQLModel.metadata.create_all(target)
