from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from salon_api.core import config


connect_args = {"check_same_thread": False} if config.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(config.DATABASE_URL, connect_args=connect_args)


def enable_sqlite_write_locks(target_engine) -> None:
    """Start every SQLite transaction with BEGIN IMMEDIATE.

    SQLite ignores FOR UPDATE and pysqlite defers BEGIN until the first write,
    so a count followed by an insert would not hold the write lock in between.
    """

    @event.listens_for(target_engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(target_engine, "begin")
    def _begin_immediate(connection):
        connection.exec_driver_sql("BEGIN IMMEDIATE")


if engine.dialect.name == "sqlite":
    enable_sqlite_write_locks(engine)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
