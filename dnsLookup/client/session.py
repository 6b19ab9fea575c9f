"""aiohttp driver that submits lookup forms to the API."""
from __future__ import annotations

import asyncio
from typing import Optional

import aiohttp

from dnsLookup.client.form import LookupForm
from dnsLookup.client.state import QueryStateMachine
from dnsLookup.logging_config import get_logger
from dnsLookup.lookup.models import LookupResult

logger = get_logger("client")

LOOKUP_PATH = "/api/dns/lookup"
DEFAULT_ERROR = "DNS lookup failed"


class LookupRequestError(Exception):
    """The API answered with a non-success status."""


class LookupSession:
    """Submit forms and drive a QueryStateMachine with the outcome."""

    def __init__(
        self,
        api_base: str,
        session: Optional[aiohttp.ClientSession] = None,
        machine: Optional[QueryStateMachine] = None,
    ):
        self.api_base = api_base.rstrip("/")
        self.machine = machine or QueryStateMachine()
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "LookupSession":
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    @property
    def url(self) -> str:
        return f"{self.api_base}{LOOKUP_PATH}"

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError("LookupSession used outside 'async with'")
        return self._session

    async def _post(self, session: aiohttp.ClientSession, body: dict) -> LookupResult:
        async with session.post(self.url, json=body) as response:
            if not response.ok:
                try:
                    data = await response.json(content_type=None)
                except (aiohttp.ContentTypeError, ValueError):
                    data = {}
                message = data.get("message") if isinstance(data, dict) else None
                raise LookupRequestError(message or DEFAULT_ERROR)
            data = await response.json(content_type=None)
        return LookupResult.model_validate(data)

    async def submit(self, form: LookupForm, domain: Optional[str] = None) -> bool:
        """Run one lookup cycle. Returns False for incomplete forms and failures."""
        body = form.build_request(domain)
        if body is None:
            return False

        session = self.session
        self.machine.submit(body["transport"], body["dnssec"])
        try:
            result = await self._post(session, body)
        except (LookupRequestError, aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            logger.warning(
                f"DNS lookup error: {exc}",
                extra={"domain": body["domain"], "error_code": type(exc).__name__, "outcome": "error"}
            )
            self.machine.fail(str(exc))
            return False

        self.machine.succeed(result)
        return True
