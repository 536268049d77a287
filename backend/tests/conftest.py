from contextlib import ExitStack

import pytest
from httpx import ASGITransport, AsyncClient
from pydantic_ai import models
from pydantic_ai.messages import ModelMessage
from pydantic_ai.models.function import AgentInfo, FunctionModel

from app.api.deps import get_db
from app.core import ai_generators
from app.core.config import settings
from app.main import app

# Never let a test reach a real LLM provider
models.ALLOW_MODEL_REQUESTS = False

ALL_AGENTS = (
    ai_generators.toc_insights_agent,
    ai_generators.toc_agent,
    ai_generators.slide_content_agent,
    ai_generators.annexure_agent,
    ai_generators.quick_deck_agent,
)


class FakeSession:
    """Stands in for the request-scoped AsyncSession."""

    def __init__(self):
        self.added = []
        self.flushes = 0
        self.rollbacks = 0
        self.executed = []
        self.rows = []

    def add(self, obj):
        self.added.append(obj)

    async def flush(self):
        self.flushes += 1

    async def rollback(self):
        self.rollbacks += 1

    async def execute(self, statement, params=None):
        self.executed.append((str(statement), params))
        return FakeResult(self.rows)

    async def exec(self, statement):
        self.executed.append((str(statement), None))
        return FakeResult(self.rows)


class FakeResult:
    def __init__(self, rows):
        self._rows = rows

    def mappings(self):
        return self

    def all(self):
        return list(self._rows)


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(settings, "LLM_REQUEST_INTERVAL_SECONDS", 0.0)
    return settings


def _unavailable(messages: list[ModelMessage], info: AgentInfo):
    raise RuntimeError("LLM unavailable")


@pytest.fixture
def failing_llm():
    """Every agent raises on run."""
    model = FunctionModel(_unavailable)
    with ExitStack() as stack:
        for agent in ALL_AGENTS:
            stack.enter_context(agent.override(model=model))
        yield model


@pytest.fixture
def fake_db():
    return FakeSession()


@pytest.fixture
async def client(fake_db):
    async def _override_get_db():
        yield fake_db

    app.dependency_overrides[get_db] = _override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
