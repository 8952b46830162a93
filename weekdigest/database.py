from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from weekdigest.config import settings

connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(settings.database_url, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def init_db(bind=None):
    """Create all tables that do not exist yet"""
    # Import models so they register on Base.metadata
    import weekdigest.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
