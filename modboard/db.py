from typing import Callable, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import db_url


Base = declarative_base()


def make_engine(url: str) -> Engine:
    # sqlite connections are handed to worker threads by the repository
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args, future=True)


def make_session_factory(bind: Engine) -> Callable[[], Session]:
    return sessionmaker(bind=bind, autoflush=False, autocommit=False, future=True)


engine = make_engine(db_url())
SessionLocal = make_session_factory(engine)


def init_db(bind: Engine = engine) -> None:
    from . import models  # noqa: F401 - ensure models are imported
    Base.metadata.create_all(bind=bind)


def get_session() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
