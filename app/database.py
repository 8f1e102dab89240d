from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def is_in_memory(database_url: str) -> bool:
    return database_url in ("sqlite://", "sqlite:///:memory:")


def make_engine(database_url: str) -> Engine:
    """Create the engine backing the moderation store.

    In-memory SQLite keeps a single shared connection (StaticPool) so every
    session sees the same database for the lifetime of the process.

    Args:
        database_url: SQLAlchemy URL, e.g. "sqlite://".

    Returns:
        sqlalchemy.engine.Engine with the schema created.
    """
    kwargs = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    if is_in_memory(database_url):
        kwargs["poolclass"] = StaticPool
    engine = create_engine(database_url, **kwargs)
    Base.metadata.create_all(bind=engine)
    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
