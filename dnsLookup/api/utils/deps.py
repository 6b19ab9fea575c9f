"""Request-scoped dependencies resolved from application state."""
from __future__ import annotations

from fastapi import Request

from dnsLookup.config import Settings
from dnsLookup.lookup.orchestrator import EngineFactory
from dnsLookup.resolver.client import DnsClient


def settings_dep(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else Settings()


def engine_factory_dep(request: Request) -> EngineFactory:
    return getattr(request.app.state, "engine_factory", None) or DnsClient
