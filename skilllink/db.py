import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker, declarative_base

from skilllink.config import DATABASE_URL, DB_ECHO, SQLITE_BUSY_TIMEOUT

logger = logging.getLogger(__name__)

Base = declarative_base()


def make_engine(url: str = DATABASE_URL):
    """
    Build an engine for the given URL.

    On SQLite every transaction is opened with BEGIN IMMEDIATE so that two
    writers racing for the same slot queue on the database lock instead of
    both reading, then one failing with "database is locked" on upgrade.
    Server databases keep their default isolation; the conditional UPDATEs in
    the slot manager are atomic there on their own.

    Reads take the same lock, so on SQLite requests are served one at a time.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True, echo=DB_ECHO)

    engine = create_engine(
        url,
        echo=DB_ECHO,
        connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT},
    )

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _connection_record):
        # Take BEGIN away from pysqlite; we emit our own below
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


engine = make_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def all_or_nothing_session(bind) -> Generator[Session, None, None]:
    """
    A session whose commits only release savepoints inside one outer transaction.

    Code that commits step by step (the services do) runs unchanged, and the
    outer transaction is committed only if the whole block succeeds.
    """
    with bind.connect() as conn:
        outer = conn.begin()
        session = Session(bind=conn, autoflush=False, join_transaction_mode="create_savepoint")
        try:
            yield session
        except Exception:
            session.close()
            outer.rollback()
            raise
        session.close()
        outer.commit()


def init_db(bind=None):
    # Import models here to create tables
    from skilllink import models  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables ready")
