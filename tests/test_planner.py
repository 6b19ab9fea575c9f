"""Tests for the resolution planner."""
from __future__ import annotations

import itertools

import pytest

from dnsLookup.config import DEFAULT_DOH_SERVERS
from dnsLookup.lookup.models import DNSQuery, QueryFlag
from dnsLookup.lookup.planner import plan, resolve_target_server

NAMESERVERS = ["8.8.8.8", "1.1.1.1", "10.0.0.53", "authoritative", "https://doh.example.net/dns-query"]
TYPE_SETS = [["A"], ["MX", "TXT"], ["DNSKEY"], ["A", "AAAA", "RRSIG"]]


def _query(**overrides) -> DNSQuery:
    data = {
        "domain": "example.com",
        "nameserver": "8.8.8.8",
        "recordTypes": ["A"],
        "dnssec": False,
        "transport": "tcp",
    }
    data.update(overrides)
    return DNSQuery.model_validate(data)


def _all_queries():
    for ns, types, dnssec, transport in itertools.product(
        NAMESERVERS, TYPE_SETS, [False, True], ["tcp", "doh"]
    ):
        yield _query(nameserver=ns, recordTypes=types, dnssec=dnssec, transport=transport)


@pytest.mark.unit
class TestScenarios:
    def test_recursive_tcp_plan(self):
        result = plan(_query())

        assert result.is_authoritative is False
        assert result.flags == frozenset({QueryFlag.RD})
        assert result.target_server == "8.8.8.8"
        assert result.effective_types == ("A",)

    def test_dnssec_over_doh_plan(self):
        result = plan(_query(dnssec=True, transport="doh"))

        assert result.flags == frozenset({QueryFlag.RD, QueryFlag.DO})
        assert result.target_server == "https://dns.google/dns-query"
        assert result.effective_types == ("A", "DNSKEY", "DS", "RRSIG")

    def test_authoritative_over_doh_has_no_target(self):
        result = plan(_query(nameserver="authoritative", transport="doh"))

        assert result.is_authoritative is True
        assert result.target_server is None
        assert QueryFlag.RD not in result.flags

    def test_authoritative_dnssec_flags(self):
        result = plan(_query(nameserver="authoritative", dnssec=True))

        assert result.flags == frozenset({QueryFlag.DO})
        assert result.target_server is None

    def test_authoritative_without_dnssec_has_no_flags(self):
        assert plan(_query(nameserver="authoritative")).flags == frozenset()

    def test_doh_unknown_ip_has_no_target(self):
        assert plan(_query(nameserver="10.0.0.53", transport="doh")).target_server is None

    def test_doh_url_nameserver_used_verbatim(self):
        url = "https://doh.example.net/dns-query"
        assert plan(_query(nameserver=url, transport="doh")).target_server == url

    def test_tcp_host_name_used_verbatim(self):
        assert plan(_query(nameserver="ns1.example.net")).target_server == "ns1.example.net"

    def test_dnssec_keeps_duplicate_types(self):
        result = plan(_query(recordTypes=["DS", "A"], dnssec=True))
        assert result.effective_types == ("DS", "A", "DNSKEY", "DS", "RRSIG")

    def test_custom_doh_table(self):
        query = _query(nameserver="10.0.0.53", transport="doh")
        table = {"10.0.0.53": "https://resolver.internal/dns-query"}
        assert resolve_target_server(query, table) == "https://resolver.internal/dns-query"


@pytest.mark.unit
class TestPlanProperties:
    def test_authoritative_never_recursive(self):
        for query in _all_queries():
            if query.nameserver == "authoritative":
                assert QueryFlag.RD not in plan(query).flags

    def test_rd_iff_not_authoritative_and_do_iff_dnssec(self):
        for query in _all_queries():
            result = plan(query)
            assert (QueryFlag.RD in result.flags) == (not result.is_authoritative)
            assert (QueryFlag.DO in result.flags) == query.dnssec

    def test_effective_types_cover_requested_and_dnssec_types(self):
        for query in _all_queries():
            result = plan(query)
            assert result.effective_types[: len(query.record_types)] == query.record_types
            if query.dnssec:
                assert {"DNSKEY", "DS", "RRSIG"} <= set(result.effective_types)
            else:
                assert result.effective_types == query.record_types

    def test_known_doh_resolvers_map_to_endpoint(self):
        for ip, url in DEFAULT_DOH_SERVERS.items():
            assert plan(_query(nameserver=ip, transport="doh")).target_server == url

    def test_plan_is_idempotent(self):
        for query in _all_queries():
            assert plan(query) == plan(query)
