"""Shared fixtures: an in-memory stand-in for ``requests.Session``."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlencode

import pytest

from ons_mcp.config import Settings
from ons_mcp.dataset_service import ONSDatasetService
from ons_mcp.http_client import ONSHttpClient
from ons_mcp.ons_api import ONSApiClient
from ons_mcp.tools import ToolAdapter

BASE_URL = "https://api.test/v1"

NOT_JSON = object()


class FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None, reason: str = "OK") -> None:
        self.status_code = status_code
        self.body = body
        self.reason = reason

    def json(self) -> Any:
        if self.body is NOT_JSON:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self.body


class FakeSession:
    """Answers GET requests from a table keyed by the full request URL.

    Unknown URLs answer 404 like the real API does.
    """

    def __init__(self) -> None:
        self.routes: Dict[str, Union[FakeResponse, Exception]] = {}
        self.calls: List[str] = []
        self.timeouts: List[Optional[float]] = []
        self.headers: Dict[str, str] = {}
        self.closed = False

    def add(self, path: str, body: Any = None, status: int = 200, reason: str = "OK") -> None:
        self.routes[BASE_URL + path] = FakeResponse(status, body, reason)

    def fail(self, path: str, exc: Exception) -> None:
        self.routes[BASE_URL + path] = exc

    def get(self, url: str, params: Optional[Dict[str, Any]] = None, timeout: Optional[float] = None):
        full = f"{url}?{urlencode(params)}" if params else url
        self.calls.append(full)
        self.timeouts.append(timeout)
        answer = self.routes.get(full)
        if answer is None:
            return FakeResponse(404, {"message": "resource not found"}, "Not Found")
        if isinstance(answer, Exception):
            raise answer
        return answer

    def close(self) -> None:
        self.closed = True


def dataset_payload(dataset_id: str, title: str = "", description: str = "", dimensions=None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": dataset_id,
        "title": title or dataset_id.upper(),
        "description": description,
        "state": "published",
        "type": "filterable",
        "links": {"self": {"href": f"{BASE_URL}/datasets/{dataset_id}"}},
    }
    if dimensions is not None:
        payload["dimensions"] = [
            {"id": dim, "name": dim, "label": dim.title(), "links": {}} for dim in dimensions
        ]
    return payload


def observation(time: str, geography: str = "K02000001", value: str = "1.0") -> Dict[str, Any]:
    return {"dimensions": {"time": time, "geography": geography}, "observation": value}


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def settings() -> Settings:
    return Settings(base_url=BASE_URL, timeout=5.0, user_agent="ons-tests/0.1")


@pytest.fixture
def http(settings: Settings, session: FakeSession) -> ONSHttpClient:
    return ONSHttpClient(settings, session=session)


@pytest.fixture
def api(http: ONSHttpClient) -> ONSApiClient:
    return ONSApiClient(http)


@pytest.fixture
def service(api: ONSApiClient) -> ONSDatasetService:
    return ONSDatasetService(api)


@pytest.fixture
def adapter(service: ONSDatasetService) -> ToolAdapter:
    return ToolAdapter(service)
