import sys
from pathlib import Path

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from prepcoach.config import settings  # noqa: E402
from prepcoach.database import Base, get_db, make_engine  # noqa: E402
from prepcoach import models  # noqa: E402,F401
from prepcoach.services.curriculum import seed_curriculum  # noqa: E402


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    with factory() as db:
        seed_curriculum(db)
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory):
    with session_factory() as session:
        yield session


@pytest.fixture
def offline(monkeypatch):
    """No LLM key, no API key, no code runner."""
    monkeypatch.setattr(settings, "groq_api_key", None)
    monkeypatch.setattr(settings, "api_key", None)
    monkeypatch.setattr(settings, "code_runner_url", None)
    monkeypatch.setattr(settings, "analytics_path", None)


@pytest.fixture
def client(session_factory, offline):
    from fastapi.testclient import TestClient
    from prepcoach.main import app

    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
