from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from assessment_api.core.config import settings

# SQLite connections are shared across the request threadpool
engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {},
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)
