from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event

db = SQLAlchemy()


def enable_sqlite_write_locking(engine):
    """
    SQLite has no SELECT ... FOR UPDATE. Start every transaction with
    BEGIN IMMEDIATE so the overlap check and the insert run under the
    database write lock.
    """
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")
