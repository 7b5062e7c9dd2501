import json

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import ioc_lens.models  # noqa: F401
from ioc_lens.api.deps import get_current_user, get_reasoner, get_retriever
from ioc_lens.db import session as session_mod
from ioc_lens.db.session import get_session
from ioc_lens.main import app
from ioc_lens.services.scraper import ScrapeResult
from ioc_lens.services.storage import IndicatorStore

IP_INDICATOR = {
    "value": "1.2.3.4",
    "category": "ip",
    "riskLevel": "high",
    "description": "C2 server referenced in the report",
}
DOMAIN_INDICATOR = {
    "value": "evil.test",
    "category": "domain",
    "riskLevel": "medium",
    "description": "phishing landing domain",
}


class FakeRetriever:
    def __init__(self, text="Beacon to 1.2.3.4 and evil.test observed"):
        self.text = text
        self.calls: list[str] = []

    def fetch(self, url):
        self.calls.append(url)
        return ScrapeResult(url=url, text=self.text, tier="fallback")


class FakeReasoner:
    """Answers by task name; values that aren't strings are JSON-encoded."""

    def __init__(self, responses):
        self.responses = responses
        self.calls: list[dict] = []

    def complete_json(self, instruction, content, task="completion"):
        self.calls.append({"instruction": instruction, "content": content, "task": task})
        answer = self.responses[task]
        return answer if isinstance(answer, str) else json.dumps(answer)


@pytest.fixture()
def ioc_payload():
    return {
        "indicators": [IP_INDICATOR, DOMAIN_INDICATOR],
        "categories": [
            {"name": "ip", "count": 1, "indicators": [IP_INDICATOR]},
            {"name": "domain", "count": 1, "indicators": [DOMAIN_INDICATOR]},
        ],
    }


@pytest.fixture()
def query_payload():
    return {
        "qradar": [
            {
                "name": "Traffic to C2 IP",
                "query": "SELECT * FROM events WHERE destinationip = '1.2.3.4' LAST 7 DAYS",
            }
        ],
        "sentinel": [
            {
                "name": "Traffic to C2 IP",
                "query": "CommonSecurityLog | where DestinationIP == \"1.2.3.4\"",
            }
        ],
    }


@pytest.fixture()
def engine():
    # SQLite in-memory shared across threads for unit tests
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture()
def store(engine):
    with Session(engine) as s:
        yield IndicatorStore(s)


@pytest.fixture()
def retriever():
    return FakeRetriever()


@pytest.fixture()
def reasoner(ioc_payload, query_payload):
    return FakeReasoner({"extract_iocs": ioc_payload, "search_queries": query_payload})


@pytest.fixture()
def client(engine, monkeypatch, retriever, reasoner):
    def override_get_session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_retriever] = lambda: retriever
    app.dependency_overrides[get_reasoner] = lambda: reasoner
    monkeypatch.setattr(session_mod, "engine", engine, raising=False)

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture()
def login(client):
    def _login(user):
        app.dependency_overrides[get_current_user] = lambda: user

    return _login
