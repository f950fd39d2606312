# salon_scheduler/db.py

from contextlib import contextmanager

from sqlmodel import SQLModel, create_engine, Session

from salon_scheduler.config import settings


def build_engine(database_url: str = settings.DATABASE_URL, **kwargs):
    connect_args = {}
    if database_url.startswith("sqlite"):
        # required for SQLite + FastAPI
        connect_args["check_same_thread"] = False
    return create_engine(
        database_url,
        echo=settings.DEBUG,
        connect_args=connect_args,
        **kwargs,
    )


# Engine = connection to the database
engine = build_engine()


def create_db_and_tables(bind=None):
    from salon_scheduler import models  # noqa: F401  registers the tables

    SQLModel.metadata.create_all(bind or engine)


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session


@contextmanager
def atomic(session: Session):
    """One unit of work: commit on success, roll back on any error."""
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
