from functools import lru_cache
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from ..core_settings import get_settings
from ..domain.models import Base

def engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # FastAPI runs sync routes in a threadpool
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}

@lru_cache
def get_engine() -> Engine:
    url = get_settings().database_url
    return create_engine(url, echo=False, future=True, **engine_options(url))

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
