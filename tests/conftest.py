from __future__ import annotations

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from dealtracker.app import create_app
from dealtracker.database import create_engine, create_sessionmaker, init_db

USER = {"X-User-Id": "analyst-1"}
OTHER_USER = {"X-User-Id": "analyst-2"}


class FakeLLM:
    """Stands in for LLMClient; ``handler(prompt)`` returns the completion text."""

    def __init__(self, ready: bool = True):
        self.ready = ready
        self.calls = []
        self.handler = lambda prompt: "SUBJECT: Hello from the fund\nBODY:\nWe enjoyed reading about you."

    @property
    def is_ready(self) -> bool:
        return self.ready

    async def complete(self, prompt, system="", max_tokens=1024, temperature=0.7):
        self.calls.append(prompt)
        return self.handler(prompt)

    async def aclose(self):
        pass


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest.fixture
def client(database_url, fake_llm):
    app = create_app(database_url, llm_client=fake_llm)
    with TestClient(app) as c:
        yield c


@pytest_asyncio.fixture
async def session(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'service.db'}")
    await init_db(engine)
    sessionmaker = create_sessionmaker(engine)
    async with sessionmaker() as s:
        yield s
    await engine.dispose()


def make_startup(client, **fields):
    payload = {"name": "Acme", "sector": "Fintech", "score": 50}
    payload.update(fields)
    resp = client.post("/startups", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()
