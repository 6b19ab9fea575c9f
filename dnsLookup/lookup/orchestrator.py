"""Lookup orchestrator: plan, dispatch to the resolution engine, reduce."""
from __future__ import annotations

import time
from typing import Callable, List, Optional, Sequence

from dnsLookup.config import LookupConfig
from dnsLookup.exceptions import ResolutionError
from dnsLookup.logging_config import get_logger
from dnsLookup.lookup.models import Answer, DNSQuery, LookupResult, Record, ResolutionPlan
from dnsLookup.lookup.planner import plan as build_plan
from dnsLookup.resolver.client import DnsClient, EngineOptions, ResolutionEngine

AUTHORITATIVE_SERVER_LABEL = "Root Servers (authoritative)"

EngineFactory = Callable[[EngineOptions], ResolutionEngine]


def engine_options(query: DNSQuery, plan: ResolutionPlan, config: LookupConfig) -> EngineOptions:
    """Translate a plan into engine construction options.

    Raises ResolutionError when the plan has no usable target server, so an
    unintended default resolver is never queried.
    """
    if plan.is_authoritative and query.transport == "doh":
        raise ResolutionError(
            "DNS-over-HTTPS is not supported for authoritative queries",
            code="UNSUPPORTED_TRANSPORT",
        )
    if not plan.is_authoritative and plan.target_server is None:
        raise ResolutionError(
            f"No DNS-over-HTTPS endpoint known for nameserver {query.nameserver!r}",
            code="UNKNOWN_DOH_SERVER",
        )
    return EngineOptions(
        transport=query.transport,
        authoritative=plan.is_authoritative,
        timeout_ms=config.timeout_ms,
        retries=config.retries,
        flags=plan.flags,
        server=plan.target_server,
    )


def first_error(answers: Sequence[Answer]) -> Optional[Answer]:
    for answer in answers:
        if answer.error is not None:
            return answer
    return None


def flatten_answers(answers: Sequence[Answer]) -> List[Record]:
    """Answer order first, then record order within each answer."""
    return [record for answer in answers for record in answer.records]


def reduce_answers(answers: Sequence[Answer]) -> List[Record]:
    """Fail fast on the first per-type error, otherwise flatten."""
    failed = first_error(answers)
    if failed is not None:
        raise ResolutionError(
            failed.error.message,
            code=failed.error.code,
            record_type=failed.queried_type,
        )
    return flatten_answers(answers)


def server_label(query: DNSQuery) -> str:
    return AUTHORITATIVE_SERVER_LABEL if query.is_authoritative else query.nameserver


async def lookup(
    query: DNSQuery,
    *,
    config: Optional[LookupConfig] = None,
    engine_factory: Optional[EngineFactory] = None,
) -> LookupResult:
    """Resolve ``query`` through the engine and reduce the answers."""
    config = config or LookupConfig()
    engine_factory = engine_factory or DnsClient

    log = get_logger("lookup", context={"domain": query.domain, "nameserver": query.nameserver})

    plan = build_plan(query, config.doh_endpoints)
    log.debug(
        "Resolution plan built",
        extra={
            "transport": query.transport,
            "authoritative": plan.is_authoritative,
            "target_server": plan.target_server,
            "record_types": list(plan.effective_types),
        }
    )

    options = engine_options(query, plan, config)

    start_time = time.monotonic()
    try:
        engine = engine_factory(options)
        answers = await engine.query(query.domain, list(plan.effective_types))
    except ResolutionError:
        raise
    except Exception as exc:
        log.warning(
            f"Resolution engine call failed: {exc}",
            extra={"error_code": type(exc).__name__, "outcome": "error"}
        )
        raise ResolutionError(str(exc), code=type(exc).__name__) from exc
    query_time = int(round((time.monotonic() - start_time) * 1000))

    try:
        records = reduce_answers(answers)
    except ResolutionError as exc:
        log.warning(
            f"Lookup failed on {exc.record_type} sub-query: {exc}",
            extra={
                "record_type": exc.record_type,
                "error_code": exc.code,
                "query_time": query_time,
                "outcome": "error",
            }
        )
        raise

    log.info(
        "Lookup completed",
        extra={
            "query_time": query_time,
            "record_count": len(records),
            "outcome": "success",
        }
    )
    return LookupResult(
        records=records,
        query_time=query_time,
        server=server_label(query),
        raw_data=list(answers),
    )
