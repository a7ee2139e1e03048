from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def create_session_factory(database_url: str) -> sessionmaker:
    """Build an engine for ``database_url`` and return a session factory bound to it."""
    connect_args = {}
    engine_kwargs = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        if ":memory:" in database_url or database_url == "sqlite://":
            # one shared connection, otherwise every session sees an empty db
            engine_kwargs["poolclass"] = StaticPool

    engine = create_engine(
        database_url, connect_args=connect_args, future=True, **engine_kwargs
    )
    return sessionmaker(bind=engine, expire_on_commit=False, future=True)


def init_db(session_factory: sessionmaker) -> None:
    # models must be imported so their tables register on Base.metadata
    from .models import models  # noqa: F401

    Base.metadata.create_all(bind=session_factory.kw["bind"])
