from app.core.config import settings
from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine


connect_args = {}
if settings.database_url.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(settings.database_url, connect_args=connect_args)


if engine.dialect.name == "sqlite":
    # pysqlite defers BEGIN until the first DML statement, so reads made
    # before it are not covered by the transaction. Emit BEGIN ourselves,
    # taking the database write lock up front for store transactions.

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_sqlite_transaction(conn):
        if conn.get_execution_options().get("write_lock"):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


def create_db_and_tables():
    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session
