"""
Database connection and session management
"""
from sqlalchemy import create_engine, pool
from sqlalchemy.orm import declarative_base, sessionmaker

from branchstock.config import settings


def _engine_kwargs(url: str) -> dict:
    """Pool and connect options per backend. SQLite (tests, local) has no server-side timeouts."""
    if url.startswith("sqlite"):
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": pool.StaticPool,
        }
    return {
        "poolclass": pool.QueuePool,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_pre_ping": True,  # Verify connections before using
        "pool_recycle": 3600,  # Recycle connections after 1 hour
        "connect_args": {
            "connect_timeout": 10,
            "options": "-c statement_timeout=60000",
        },
    }


# Create engine with connection pooling and timeout
engine = create_engine(
    settings.database_connection_string,
    echo=settings.DEBUG,
    **_engine_kwargs(settings.database_connection_string),
)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def get_db():
    """
    Dependency for FastAPI to get database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None) -> None:
    """Create all tables. Idempotent."""
    import branchstock.models  # noqa: F401  (register mappers)
    Base.metadata.create_all(bind=bind or engine)
