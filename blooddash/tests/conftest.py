import os

# settings are read at import time by blooddash.db.session
os.environ.setdefault("DATABASE_URL", "sqlite:///./blooddash-test.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

# FORCE model registration
import blooddash.models  # noqa

from blooddash.auth.provider import IdentityProvider, get_identity_provider
from blooddash.core.config import get_settings
from blooddash.core.revalidate import view_cache
from blooddash.db.base import Base
from blooddash.db.session import get_db, make_engine
from blooddash.main import app
from blooddash.tests.helpers import RecordingMailer


@pytest.fixture(scope="function")
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'blooddash.db'}")
    Base.metadata.create_all(eng)
    try:
        yield eng
    finally:
        Base.metadata.drop_all(eng)
        eng.dispose()

@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

@pytest.fixture(scope="function")
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def mailer():
    return RecordingMailer()

@pytest.fixture
def provider(session_factory, mailer):
    return IdentityProvider(session_factory, mailer, get_settings())

@pytest.fixture
def client(session_factory, provider):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_provider] = lambda: provider
    view_cache.clear()

    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        view_cache.clear()

