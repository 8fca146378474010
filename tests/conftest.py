"""Shared fakes: no network, no real sleeping."""
from __future__ import annotations

import datetime as dt
import json
from typing import Any, Callable, Dict, List, Optional

import pytest
import requests

from jobharvest.models import Job, SourceData


def utc(y: int, m: int, d: int, h: int = 0) -> dt.datetime:
    return dt.datetime(y, m, d, h, tzinfo=dt.timezone.utc)


def make_test_job(
    title: str = "SRE Engineer",
    company: str = "Acme",
    location: str = "Remote",
    posted_at: Optional[dt.datetime] = None,
    source: str = "test",
    description: str = "",
    **kw: Any,
) -> Job:
    jid = kw.pop("id", f"{source}-{title}-{company}-{location}-{posted_at}")
    return Job(
        id=jid,
        title=title,
        company=company,
        location=location,
        description=description,
        url=kw.pop("url", f"https://example.com/{source}/{len(jid)}"),
        source=source,
        source_data=SourceData(original_id=jid, original_url="https://example.com"),
        posted_at=posted_at,
        **kw,
    )


class FakeResponse:
    def __init__(self, body: Any = "", status_code: int = 200, url: str = ""):
        if isinstance(body, (dict, list)):
            body = json.dumps(body)
        self.text = body
        self.content = body.encode("utf-8")
        self.status_code = status_code
        self.url = url

    def json(self) -> Any:
        return json.loads(self.text)

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error for {self.url}")


class FakeSession:
    """Answers GETs by URL; records every call."""

    def __init__(self, routes: Optional[Dict[str, Any]] = None):
        self.routes = routes or {}
        self.calls: List[Dict[str, Any]] = []

    def get(self, url: str, params=None, headers=None, timeout=None) -> FakeResponse:
        self.calls.append({"url": url, "params": params or {}, "timeout": timeout})
        answer = self.routes.get(url)
        if answer is None:
            return FakeResponse("not found", status_code=404, url=url)
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, FakeResponse):
            return answer
        return FakeResponse(answer, url=url)


class FakeAdapter:
    """Scripted source: each call pops the next behaviour (a list of jobs or an exception)."""

    def __init__(self, name: str, script: Optional[List[Any]] = None, default: Any = None):
        self.name = name
        self.script = list(script or [])
        self.default = default if default is not None else []
        self.calls: List[tuple] = []

    def search_jobs(self, query: str, location: Optional[str] = None) -> List[Job]:
        self.calls.append((query, location))
        step = self.script.pop(0) if self.script else self.default
        if isinstance(step, Exception):
            raise step
        if callable(step):
            return step(query, location)
        return list(step)


class FakeClock:
    """Monotonic clock whose sleep advances time instead of blocking."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fixed_now() -> Callable[[], dt.datetime]:
    return lambda: utc(2024, 3, 1, 12)
