from typing import Iterable, List

import pytest
from fastapi.testclient import TestClient

from linguaai.db import Base, build_engine, build_session_factory, get_db
from linguaai.hmac_auth import build_authorization_header
from linguaai.main import create_app
from linguaai.settings import Settings
from linguaai.tutor import LanguageTutor, get_tutor

USER_ID = "alice"
API_KEY = "secret123"


class FakeGemini:
    """Stands in for GeminiClient; replays canned model output."""

    def __init__(self, responses: Iterable[str] = ()):
        self.responses: List[str] = list(responses)
        self.prompts: List[str] = []
        self.parts: List[list] = []

    def queue(self, *responses: str) -> None:
        self.responses.extend(responses)

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.responses.pop(0)

    async def generate_multimodal(self, parts, **kwargs) -> str:
        self.parts.append(parts)
        return self.responses.pop(0)

    async def aclose(self) -> None:
        pass


@pytest.fixture
def settings():
    return Settings(
        AUTH_USER_ID=USER_ID,
        AUTH_API_KEY=API_KEY,
        AUTH_DRIFT_WINDOWS=1,
        AUTH_ALLOW_ANONYMOUS=False,
        DOCS_USERNAME="admin",
        DOCS_PASSWORD="s3cret",
        GEMINI_API_KEY="test-key",
        DATABASE_URL="sqlite://",
    )


@pytest.fixture
def session_factory():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def fake_gemini():
    return FakeGemini()


@pytest.fixture
def app(settings, session_factory, fake_gemini):
    app = create_app(settings)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_tutor] = lambda: LanguageTutor(fake_gemini, learner_language="Vietnamese")
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_headers():
    """Fresh, currently valid Authorization header."""
    return {"Authorization": build_authorization_header(USER_ID, API_KEY)}
