"""Shared fixtures: in-memory database, mocked providers, API client"""
import pytest
from unittest.mock import Mock
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sheetchat import models  # noqa: F401
from sheetchat.api.deps import get_ai_service, get_identity, get_sheets_service
from sheetchat.core.database import Base, get_db
from sheetchat.services.ai_service import AIService
from sheetchat.services.google_sheets_service import GoogleSheetsService
from sheetchat.services.identity import Identity

SHEET_ID = "ABC123"
GRID = [["Name", "Age"], ["Alice", "30"]]
TABLE = "| Name | Age |\n| --- | --- |\n| Alice | 30 |\n"


@pytest.fixture
def db_session():
    """Session on a fresh in-memory SQLite database"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def sheets_service():
    service = Mock(spec=GoogleSheetsService)
    service.fetch_grid.return_value = [row[:] for row in GRID]
    service.get_sheet_title.return_value = "People"
    return service


@pytest.fixture
def ai_service():
    return Mock(spec=AIService)


@pytest.fixture
def identity():
    return Identity(user_id="user-1", google_access_token="google-token")


@pytest.fixture
def app():
    from sheetchat.main import app
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app, db_session, sheets_service, ai_service, identity):
    """API client with database, providers and caller swapped for test doubles"""
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_sheets_service] = lambda: sheets_service
    app.dependency_overrides[get_ai_service] = lambda: ai_service
    app.dependency_overrides[get_identity] = lambda: identity
    return TestClient(app)
