import os

import pytest
from fastapi.testclient import TestClient

TEST_DB_URL = os.getenv('TEST_DB_URL', 'sqlite://')
os.environ['DATABASE_URL'] = TEST_DB_URL
os.environ['ENV'] = 'test'
os.environ['JWT_SECRET'] = 'test-access-secret'
os.environ['JWT_REFRESH_SECRET'] = 'test-refresh-secret'
os.environ.pop('ADMIN_EMAIL', None)
os.environ.pop('ADMIN_PASSWORD', None)

from academy.core.config import settings
from academy.db.init_db import init_db
from academy.db.session import Database
from academy.main import create_app

settings.DATABASE_URL = TEST_DB_URL


@pytest.fixture
def database():
    db = Database(TEST_DB_URL)
    init_db(db.engine, drop_all=True)
    try:
        yield db
    finally:
        db.dispose()


@pytest.fixture
def session(database):
    with database.session() as db_session:
        yield db_session


@pytest.fixture
def client(database):
    with TestClient(create_app(database)) as test_client:
        yield test_client
