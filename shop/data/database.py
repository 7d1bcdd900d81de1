# shop/data/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from shop.utils.settings import (
    DATABASE_URL,
    DB_STATEMENT_TIMEOUT_MS,
    DB_CONNECT_TIMEOUT_SECONDS,
    DB_POOL_TIMEOUT_SECONDS,
)


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # busy timeout in seconds; check_same_thread off for the threadpool
        return {
            "connect_args": {
                "check_same_thread": False,
                "timeout": DB_STATEMENT_TIMEOUT_MS / 1000,
            },
        }
    return {
        "pool_pre_ping": True,
        "pool_timeout": DB_POOL_TIMEOUT_SECONDS,
        "connect_args": {
            "connect_timeout": DB_CONNECT_TIMEOUT_SECONDS,
            "options": f"-c statement_timeout={DB_STATEMENT_TIMEOUT_MS}",
        },
    }


def make_engine(url: str | None = None):
    url = url or DATABASE_URL
    return create_engine(url, **_engine_options(url))


engine = make_engine()

SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
