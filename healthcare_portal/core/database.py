from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from typing import Generator
import redis
from .config import settings

database_url = settings.get_database_url

if database_url.startswith("sqlite"):
    # SQLite is used for local runs and tests; sessions cross threads under TestClient
    engine = create_engine(
        database_url,
        connect_args={"check_same_thread": False},
    )
else:
    # PostgreSQL with appropriate connection pool settings
    engine = create_engine(
        database_url,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,  # Recycle connections after 30 minutes
        pool_pre_ping=True,
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Connections are opened lazily on first command
redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)

# Database dependency
def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# Redis dependency
def get_redis():
    """Get Redis client."""
    return redis_client

# Database initialization
def init_db():
    """Initialize database tables."""
    from ..models import user, patient, provider, appointment  # noqa: F401  register tables

    Base.metadata.create_all(bind=engine)
