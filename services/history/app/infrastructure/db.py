from functools import lru_cache
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from ..core_settings import get_settings
from ..domain.models import Base

@lru_cache
def get_engine() -> Engine:
    url = get_settings().database_url
    options = {"connect_args": {"check_same_thread": False}} if url.startswith("sqlite") else {"pool_pre_ping": True}
    return create_engine(url, echo=False, future=True, **options)

@lru_cache
def get_session_factory() -> sessionmaker:
    return sessionmaker(bind=get_engine(), autoflush=False, autocommit=False, expire_on_commit=False)

def get_db() -> Session:
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()

def init_models():
    Base.metadata.create_all(get_engine())
