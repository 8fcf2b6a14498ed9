from sqlalchemy import Engine, text
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from fieldops.core.config import settings


def build_engine(url: str) -> Engine:
    """Create an engine with pool settings suited to the backing database."""
    if url.startswith("sqlite"):
        # A single shared connection keeps in-memory databases alive across sessions
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(
        url,
        pool_pre_ping=settings.DATABASE_POOL_PRE_PING,  # Verify connections before use
        pool_recycle=3600,  # Recycle connections every hour
        pool_size=10,
        max_overflow=20,
        connect_args={
            "connect_timeout": 10,
            "application_name": settings.PROJECT_NAME,
        },
    )


engine = build_engine(settings.SQLALCHEMY_DATABASE_URI)


# make sure all SQLModel models are imported (fieldops.models) before initializing DB
# otherwise, SQLModel might fail to initialize relationships properly


def init_db(target: Engine | None = None) -> None:
    """Create all tables. Schema migrations are not managed by this service."""
    import fieldops.models  # noqa: F401

    SQLModel.metadata.create_all(target or engine)


def ping(session: Session) -> bool:
    """Database round-trip used by the readiness check."""
    session.execute(text("SELECT 1"))
    return True
