from typing import Iterator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute('PRAGMA foreign_keys=ON')
    cursor.close()


def build_engine(url: str) -> Engine:
    if not url.startswith('sqlite'):
        return create_engine(url, pool_pre_ping=True)
    kwargs: dict = {'connect_args': {'check_same_thread': False}}
    if ':memory:' in url or url in {'sqlite://', 'sqlite+pysqlite://'}:
        # every session must see the same in-memory database
        kwargs['poolclass'] = StaticPool
    engine = create_engine(url, **kwargs)
    event.listen(engine, 'connect', _enable_sqlite_foreign_keys)
    return engine


class Database:
    """Owns the engine for one application instance.

    Built at startup and handed to ``create_app``; ``dispose`` releases the
    connection pool at shutdown.
    """

    def __init__(self, url: str, engine: Engine | None = None) -> None:
        self.url = url
        self.engine = engine if engine is not None else build_engine(url)

    def session(self) -> Session:
        return Session(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_session(request: Request) -> Iterator[Session]:
    with get_database(request).session() as session:
        yield session
