import pytest
from fastapi.testclient import TestClient

from google_search_mcp.config.settings import Settings
from google_search_mcp.errors import FailureKind, FetchError
from google_search_mcp.search.models import PageAnalysis, PageMetadata
from google_search_mcp.server import create_app


class FakeFetcher:
    def __init__(self, errors=None):
        self.errors = errors or {}
        self.closed = False

    async def analyze(self, url):
        if url in self.errors:
            raise self.errors[url]
        return PageAnalysis(title="Example", text="Body", metadata=PageMetadata(author="Ann"))

    async def batch_analyze(self, urls):
        return [{"url": url, "result": {"title": "Example"}} for url in urls]

    async def close(self):
        self.closed = True


@pytest.fixture
def settings(monkeypatch) -> Settings:
    monkeypatch.delenv("SERVER_MODE", raising=False)
    return Settings(load_env_file=False)


def test_health(settings) -> None:
    with TestClient(create_app(settings, fetcher=FakeFetcher())) as client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_analyze(settings) -> None:
    with TestClient(create_app(settings, fetcher=FakeFetcher())) as client:
        response = client.post("/analyze", json={"url": "https://example.com"})

    assert response.status_code == 200
    assert response.json() == {"title": "Example", "text": "Body", "metadata": {"author": "Ann"}}


@pytest.mark.parametrize("kind, status", [
    (FailureKind.NOT_FOUND, 404),
    (FailureKind.ACCESS_DENIED, 403),
    (FailureKind.INVALID_ARGUMENT, 400),
    (FailureKind.INTERNAL, 500),
])
def test_analyze_errors(settings, kind, status) -> None:
    fetcher = FakeFetcher(errors={"https://bad.example": FetchError(kind, "failed")})

    with TestClient(create_app(settings, fetcher=fetcher)) as client:
        response = client.post("/analyze", json={"url": "https://bad.example"})

    assert response.status_code == status
    assert response.json()["detail"] == {"error": "failed", "kind": kind.value}


def test_analyze_requires_url(settings) -> None:
    with TestClient(create_app(settings, fetcher=FakeFetcher())) as client:
        response = client.post("/analyze", json={})

    assert response.status_code == 422


def test_batch_analyze(settings) -> None:
    fetcher = FakeFetcher()

    with TestClient(create_app(settings, fetcher=fetcher)) as client:
        response = client.post("/batch_analyze", json={"urls": ["https://a.example", "https://b.example"]})

    assert response.status_code == 200
    assert [entry["url"] for entry in response.json()["results"]] == ["https://a.example", "https://b.example"]
    assert fetcher.closed
