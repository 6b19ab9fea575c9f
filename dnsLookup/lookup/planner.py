"""Resolution planner: turns a validated query into dispatch parameters.

Pure and total. No I/O happens here and no query can make planning fail;
combinations the engine cannot serve (authoritative over DoH, DoH to an
unknown resolver) surface as a plan without a target server and are
rejected by the orchestrator.
"""
from __future__ import annotations

from typing import FrozenSet, Mapping, Optional
from urllib.parse import urlparse

from dnsLookup.config import DEFAULT_DOH_SERVERS
from dnsLookup.lookup.models import DNSSEC_RECORD_TYPES, DNSQuery, QueryFlag, ResolutionPlan


def _is_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def resolve_flags(is_authoritative: bool, dnssec: bool) -> FrozenSet[QueryFlag]:
    flags = set()
    if not is_authoritative:
        flags.add(QueryFlag.RD)
    if dnssec:
        flags.add(QueryFlag.DO)
    return frozenset(flags)


def resolve_target_server(
    query: DNSQuery,
    doh_servers: Mapping[str, str] = DEFAULT_DOH_SERVERS,
) -> Optional[str]:
    """Pick the server the engine should talk to, or None for none."""
    if query.is_authoritative:
        # Engine walks the delegation chain from the root servers.
        return None
    if query.transport == "tcp":
        return query.nameserver
    endpoint = doh_servers.get(query.nameserver)
    if endpoint:
        return endpoint
    return query.nameserver if _is_url(query.nameserver) else None


def plan(query: DNSQuery, doh_servers: Mapping[str, str] = DEFAULT_DOH_SERVERS) -> ResolutionPlan:
    """Build the ResolutionPlan for ``query``."""
    effective_types = tuple(query.record_types)
    if query.dnssec:
        effective_types += DNSSEC_RECORD_TYPES

    return ResolutionPlan(
        is_authoritative=query.is_authoritative,
        flags=resolve_flags(query.is_authoritative, query.dnssec),
        target_server=resolve_target_server(query, doh_servers),
        effective_types=effective_types,
    )
