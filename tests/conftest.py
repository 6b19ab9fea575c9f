"""Shared fixtures for the dnsLookup test suite."""
from __future__ import annotations

import os

# Keep test runs from writing JSONL log files into the working tree
os.environ.setdefault("DNSLOOKUP_LOG_FILE", "")

from typing import Callable, List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from dnsLookup.api.server import create_app
from dnsLookup.config import Settings
from dnsLookup.lookup.models import Answer, ErrorInfo, Record
from dnsLookup.resolver.client import EngineOptions


def make_answer(
    rtype: str,
    contents: Sequence[str] = (),
    name: str = "example.com",
    ttl: Optional[int] = 300,
    error: Optional[ErrorInfo] = None,
) -> Answer:
    return Answer(
        name=name,
        queried_type=rtype,
        rcode="NOERROR" if error is None else error.code,
        records=[Record(type=rtype, name=name, content=c, ttl=ttl) for c in contents],
        error=error,
    )


class FakeEngine:
    def __init__(self, factory: "FakeEngineFactory", options: EngineOptions):
        self.factory = factory
        self.options = options

    async def query(self, name: str, types: Sequence[str]) -> List[Answer]:
        self.factory.queries.append((name, list(types)))
        if self.factory.exc is not None:
            raise self.factory.exc
        return self.factory.responder(name, list(types))


def _default_responder(name: str, types: List[str]) -> List[Answer]:
    return [make_answer(t, [f"{t.lower()}-record"], name=name) for t in types]


class FakeEngineFactory:
    """Records every EngineOptions it is built with and every query made."""

    def __init__(
        self,
        responder: Callable[[str, List[str]], List[Answer]] = _default_responder,
        exc: Optional[Exception] = None,
    ):
        self.responder = responder
        self.exc = exc
        self.options: List[EngineOptions] = []
        self.queries: List[tuple] = []

    def __call__(self, options: EngineOptions) -> FakeEngine:
        self.options.append(options)
        return FakeEngine(self, options)


@pytest.fixture
def fake_factory() -> FakeEngineFactory:
    return FakeEngineFactory()


@pytest.fixture
def static_dir(tmp_path):
    (tmp_path / "index.html").write_text("<html><body>dnsLookup form</body></html>")
    return tmp_path


@pytest.fixture
def client(fake_factory, static_dir) -> TestClient:
    app = create_app(Settings(static_dir=str(static_dir)), engine_factory=fake_factory)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def client_without_assets(fake_factory) -> TestClient:
    app = create_app(Settings(static_dir=None), engine_factory=fake_factory)
    with TestClient(app) as test_client:
        yield test_client
