"""DNS resolution engine built on dnspython.

The orchestrator only relies on the ResolutionEngine protocol; DnsClient is
the default implementation. It sends one sub-query per record type over TCP
or DNS-over-HTTPS, or walks the delegation chain from the root servers when
asked for an authoritative answer.
"""
from __future__ import annotations

import asyncio
from typing import FrozenSet, List, Optional, Protocol, Sequence, Tuple

import dns.asyncquery
import dns.asyncresolver
import dns.exception
import dns.flags
import dns.inet
import dns.message
import dns.name
import dns.rcode
import dns.rdatatype
import dns.resolver
from pydantic import BaseModel, ConfigDict, Field

from dnsLookup.logging_config import get_logger
from dnsLookup.lookup.models import Answer, QueryFlag, Transport
from dnsLookup.resolver.records import answer_from_response, error_answer

logger = get_logger("resolver")

EDNS_PAYLOAD = 1232
MAX_REFERRALS = 16
MAX_NS_DEPTH = 4
MAX_SERVERS_PER_HOP = 3

# IANA root server hints (IPv4)
ROOT_SERVERS: Tuple[str, ...] = (
    "198.41.0.4",
    "170.247.170.2",
    "192.33.4.12",
    "199.7.91.13",
    "192.203.230.10",
    "192.5.5.241",
    "192.112.36.4",
    "198.97.190.53",
    "192.36.148.17",
    "192.58.128.30",
    "193.0.14.129",
    "199.7.83.42",
    "202.12.27.33",
)


class EngineOptions(BaseModel):
    transport: Transport = "tcp"
    authoritative: bool = False
    timeout_ms: int = Field(default=10_000, gt=0)
    retries: int = Field(default=2, ge=1)
    flags: FrozenSet[QueryFlag] = frozenset({QueryFlag.RD})
    server: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class ResolutionEngine(Protocol):
    async def query(self, name: str, types: Sequence[str]) -> List[Answer]:
        ...


class ReferralError(dns.exception.DNSException):
    """Iterative resolution could not follow the delegation chain."""


class DnsClient:
    """dnspython-backed resolution engine."""

    def __init__(self, options: EngineOptions, root_servers: Sequence[str] = ROOT_SERVERS):
        if not options.authoritative and not options.server:
            raise ValueError("A target server is required for non-authoritative queries")
        self.options = options
        self.root_servers = list(root_servers)

    @property
    def timeout(self) -> float:
        return self.options.timeout_ms / 1000.0

    @staticmethod
    def remaining(deadline: float) -> float:
        return deadline - asyncio.get_running_loop().time()

    async def query(self, name: str, types: Sequence[str]) -> List[Answer]:
        """Run one sub-query per type concurrently; answers keep request order.

        ``timeout_ms`` is a single deadline for the whole call. Every attempt,
        server and referral hop only gets the time that is left.
        """
        deadline = asyncio.get_running_loop().time() + self.timeout
        server = None
        if not self.options.authoritative:
            server = await self._resolve_server(deadline)
        logger.debug(
            "Dispatching DNS sub-queries",
            extra={
                "domain": name,
                "record_types": list(types),
                "transport": self.options.transport,
                "target_server": server,
                "authoritative": self.options.authoritative,
            }
        )
        return list(await asyncio.gather(*(self._query_type(name, t, server, deadline) for t in types)))

    async def _resolve_server(self, deadline: float) -> str:
        server = self.options.server
        if self.options.transport == "doh" or dns.inet.is_address(server):
            return server
        # Host name given for TCP; dnspython needs an address
        answer = await dns.asyncresolver.resolve(server, "A", lifetime=max(self.remaining(deadline), 0.0))
        return answer[0].address

    def make_message(self, qname: dns.name.Name, rdtype: dns.rdatatype.RdataType) -> dns.message.Message:
        message = dns.message.make_query(qname, rdtype)
        if QueryFlag.RD in self.options.flags:
            message.flags = message.flags | int(dns.flags.RD)
        else:
            message.flags = message.flags & ~int(dns.flags.RD)
        if QueryFlag.DO in self.options.flags:
            message.use_edns(edns=0, ednsflags=dns.flags.DO, payload=EDNS_PAYLOAD)
        return message

    async def _query_type(self, name: str, rtype: str, server: Optional[str], deadline: float) -> Answer:
        try:
            qname = dns.name.from_text(name)
            rdtype = dns.rdatatype.from_text(rtype)
        except dns.exception.DNSException as exc:
            return error_answer(name, rtype, exc, server)

        try:
            if self.options.authoritative:
                response, server = await asyncio.wait_for(
                    self._iterate(qname, rdtype, deadline),
                    timeout=max(self.remaining(deadline), 0.0),
                )
            else:
                response = await asyncio.wait_for(
                    self._exchange(self.make_message(qname, rdtype), server, deadline),
                    timeout=max(self.remaining(deadline), 0.0),
                )
        except asyncio.TimeoutError:
            logger.debug(
                f"{rtype} sub-query for {name} ran out of time",
                extra={"domain": name, "record_type": rtype, "error_code": "TIMEOUT"}
            )
            return error_answer(name, rtype, dns.exception.Timeout(timeout=self.timeout), server)
        except Exception as exc:
            logger.debug(
                f"{rtype} sub-query for {name} failed: {exc}",
                extra={"domain": name, "record_type": rtype, "error_code": type(exc).__name__}
            )
            return error_answer(name, rtype, exc, server)

        return answer_from_response(name, rtype, response, server)

    async def _exchange(
        self,
        message: dns.message.Message,
        where: str,
        deadline: float,
        *,
        tcp: bool = False,
    ) -> dns.message.Message:
        """Send ``message`` with the configured retry budget, within ``deadline``."""
        attempt = 0
        while True:
            attempt += 1
            remaining = self.remaining(deadline)
            if remaining <= 0:
                raise dns.exception.Timeout(timeout=self.timeout)
            try:
                if self.options.transport == "doh" and not tcp:
                    return await dns.asyncquery.https(message, where, timeout=remaining)
                return await dns.asyncquery.tcp(message, where, timeout=remaining)
            except Exception as exc:
                logger.debug(
                    f"Attempt {attempt}/{self.options.retries} to {where} failed: {exc}",
                    extra={"target_server": where, "error_code": type(exc).__name__}
                )
                if attempt >= self.options.retries:
                    raise

    async def _ask_any(
        self,
        message: dns.message.Message,
        servers: Sequence[str],
        deadline: float,
    ) -> Tuple[dns.message.Message, str]:
        last_exc: Optional[Exception] = None
        for server in list(servers)[:MAX_SERVERS_PER_HOP]:
            try:
                return await self._exchange(message, server, deadline, tcp=True), server
            except dns.exception.Timeout as exc:
                if self.remaining(deadline) <= 0:
                    raise
                last_exc = exc
            except Exception as exc:
                last_exc = exc
        if last_exc is not None:
            raise last_exc
        raise dns.resolver.NoNameservers()

    async def _iterate(
        self,
        qname: dns.name.Name,
        rdtype: dns.rdatatype.RdataType,
        deadline: float,
        depth: int = 0,
    ) -> Tuple[dns.message.Message, str]:
        """Follow referrals from the root servers down to an answer."""
        message = self.make_message(qname, rdtype)
        servers: List[str] = list(self.root_servers)
        for _ in range(MAX_REFERRALS):
            response, server = await self._ask_any(message, servers, deadline)
            if response.answer or response.rcode() != dns.rcode.NOERROR:
                return response, server
            if response.flags & dns.flags.AA:
                return response, server

            ns_names = [
                rdata.target
                for rrset in response.authority
                if rrset.rdtype == dns.rdatatype.NS
                for rdata in rrset
            ]
            if not ns_names:
                # NODATA: the zone exists but has no records of this type
                return response, server

            servers = glue_addresses(response, ns_names)
            if not servers:
                servers = await self._lookup_nameservers(ns_names, deadline, depth)
            if not servers:
                raise ReferralError(f"No reachable nameservers for {qname}")

        raise ReferralError(f"Too many referrals while resolving {qname}")

    async def _lookup_nameservers(
        self,
        ns_names: Sequence[dns.name.Name],
        deadline: float,
        depth: int,
    ) -> List[str]:
        if depth >= MAX_NS_DEPTH:
            raise ReferralError("Nameserver lookup nested too deeply")
        for ns_name in ns_names:
            try:
                response, _ = await self._iterate(ns_name, dns.rdatatype.A, deadline, depth + 1)
            except Exception as exc:
                if self.remaining(deadline) <= 0:
                    raise
                logger.debug(f"Could not resolve nameserver {ns_name}: {exc}")
                continue
            addresses = [
                rdata.address
                for rrset in response.answer
                if rrset.rdtype == dns.rdatatype.A
                for rdata in rrset
            ]
            if addresses:
                return addresses
        return []


def glue_addresses(response: dns.message.Message, ns_names: Sequence[dns.name.Name]) -> List[str]:
    """IPv4 glue for the referral's nameservers from the additional section."""
    wanted = set(ns_names)
    return [
        rdata.address
        for rrset in response.additional
        if rrset.rdtype == dns.rdatatype.A and rrset.name in wanted
        for rdata in rrset
    ]
