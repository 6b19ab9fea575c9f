"""DNS lookup endpoint."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from dnsLookup.api.utils.deps import engine_factory_dep, settings_dep
from dnsLookup.config import Settings
from dnsLookup.exceptions import QueryValidationError
from dnsLookup.logging_config import get_logger, sanitize_log_data
from dnsLookup.lookup.models import DNSQuery
from dnsLookup.lookup.orchestrator import EngineFactory, lookup

logger = get_logger("api")
router = APIRouter(prefix="/api/dns", tags=["dns"])

LOOKUP_PATH = "/api/dns/lookup"


async def parse_query(request: Request) -> DNSQuery:
    """Validate the JSON body. Details are logged, never returned."""
    try:
        payload: Any = await request.json()
    except ValueError as exc:
        logger.info("Rejected lookup request: body is not JSON", extra={"outcome": "invalid"})
        raise QueryValidationError() from exc

    if not isinstance(payload, dict):
        logger.info("Rejected lookup request: body is not an object", extra={"outcome": "invalid"})
        raise QueryValidationError()

    try:
        return DNSQuery.model_validate(payload)
    except ValidationError as exc:
        logger.info(
            f"Rejected lookup request: {exc.error_count()} validation error(s)",
            extra={
                "user_input": sanitize_log_data(payload),
                "error_code": "VALIDATION",
                "outcome": "invalid",
            }
        )
        raise QueryValidationError() from exc


@router.options("/lookup", include_in_schema=False)
async def lookup_preflight() -> Response:
    return Response(status_code=204)


@router.post("/lookup")
async def dns_lookup(
    request: Request,
    settings: Settings = Depends(settings_dep),
    engine_factory: EngineFactory = Depends(engine_factory_dep),
):
    query = await parse_query(request)

    logger.info(
        "DNS lookup requested",
        extra={
            "domain": query.domain,
            "nameserver": query.nameserver,
            "record_types": list(query.record_types),
            "dnssec": query.dnssec,
            "transport": query.transport,
        }
    )

    result = await lookup(query, config=settings.lookup, engine_factory=engine_factory)
    return JSONResponse(result.model_dump(by_alias=True, mode="json"))


@router.api_route(
    "/lookup",
    methods=["GET", "HEAD", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def lookup_method_not_allowed() -> Response:
    return Response(status_code=405)
