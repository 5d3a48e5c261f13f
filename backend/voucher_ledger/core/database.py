"""SQLModel database engine and session management."""
from sqlalchemy import event
from sqlmodel import SQLModel, create_engine, Session
from voucher_ledger.core.config import settings

# Import models so SQLModel.metadata knows about all tables
import voucher_ledger.models.chart  # noqa: F401
import voucher_ledger.models.voucher  # noqa: F401


def build_engine(url: str):
    """Create an engine; SQLite gets foreign keys enforced on every connection."""
    if not url.startswith("sqlite"):
        return create_engine(url, echo=False, pool_pre_ping=True)

    eng = create_engine(
        url,
        connect_args={"check_same_thread": False, "timeout": settings.SQLITE_BUSY_TIMEOUT},
        echo=False,
    )

    @event.listens_for(eng, "connect")
    def _sqlite_pragmas(dbapi_conn, _record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return eng


engine = build_engine(settings.DATABASE_URL)


def create_db_and_tables() -> None:
    """Create all tables defined in SQLModel models."""
    SQLModel.metadata.create_all(engine)


def get_session():
    """FastAPI dependency: yields a SQLModel session."""
    with Session(engine) as session:
        yield session
