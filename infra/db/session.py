from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase


class Base(DeclarativeBase):
    pass


def make_engine(sqlite_path: str) -> Engine:
    engine = create_engine(
        f"sqlite:///{sqlite_path}", echo=False, future=True,
        connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _sqlite_pragmas(dbapi_conn, _record):
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()

    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine, autoflush=False, autocommit=False, future=True,
        expire_on_commit=False)


def init_db(engine: Engine):
    from infra.db.models import FileRecord, JobRecord, JobResultRecord
    Base.metadata.create_all(bind=engine)
