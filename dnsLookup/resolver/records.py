"""Conversion of dnspython messages and errors into lookup answers."""
from __future__ import annotations

from typing import List, Optional

import dns.exception
import dns.flags
import dns.message
import dns.name
import dns.rcode
import dns.rdatatype
import dns.resolver
import dns.rrset

from dnsLookup.lookup.models import Answer, ErrorInfo, Record

# Response codes that still count as a usable answer
ANSWER_RCODES = {dns.rcode.NOERROR, dns.rcode.NXDOMAIN}


def rrset_records(rrset: dns.rrset.RRset) -> List[Record]:
    """Flatten one RRset into display records."""
    rtype = dns.rdatatype.to_text(rrset.rdtype)
    name = rrset.name.to_text(omit_final_dot=True)
    return [
        Record(type=rtype, name=name, content=rdata.to_text(), ttl=rrset.ttl)
        for rdata in rrset
    ]


def response_flags(response: dns.message.Message) -> List[str]:
    text = dns.flags.to_text(response.flags)
    return text.split() if text else []


def describe_error(error: Exception) -> ErrorInfo:
    """Map an engine-side exception to a readable error."""
    if isinstance(error, dns.exception.Timeout):
        return ErrorInfo(code="TIMEOUT", message="DNS query timed out")
    if isinstance(error, dns.rdatatype.UnknownRdatatype):
        return ErrorInfo(code="BAD_TYPE", message=f"Unknown record type: {error}")
    if isinstance(error, dns.name.LabelTooLong):
        return ErrorInfo(code="BAD_NAME", message="Domain name label too long")
    if isinstance(error, dns.name.NameTooLong):
        return ErrorInfo(code="BAD_NAME", message="Domain name too long")
    if isinstance(error, dns.name.EmptyLabel):
        return ErrorInfo(code="BAD_NAME", message="Domain name contains an empty label")
    if isinstance(error, dns.resolver.NoNameservers):
        return ErrorInfo(code="NO_NAMESERVERS", message="No DNS servers responded")
    if isinstance(error, dns.exception.DNSException):
        return ErrorInfo(code="DNS_ERROR", message=f"DNS error: {error}")
    if isinstance(error, OSError):
        return ErrorInfo(code="NETWORK_ERROR", message=f"Network error: {error}")
    return ErrorInfo(code="UNEXPECTED", message=f"Unexpected error: {error}")


def rcode_error(name: str, rtype: str, rcode: int) -> ErrorInfo:
    text = dns.rcode.to_text(rcode)
    return ErrorInfo(code=text, message=f"{rtype} query for {name} failed: {text}")


def answer_from_response(
    name: str,
    rtype: str,
    response: dns.message.Message,
    server: Optional[str] = None,
) -> Answer:
    rcode = response.rcode()
    records: List[Record] = []
    for rrset in response.answer:
        records.extend(rrset_records(rrset))
    return Answer(
        name=name,
        queried_type=rtype,
        rcode=dns.rcode.to_text(rcode),
        flags=response_flags(response),
        server=server,
        records=records,
        error=None if rcode in ANSWER_RCODES else rcode_error(name, rtype, rcode),
    )


def error_answer(name: str, rtype: str, error: Exception, server: Optional[str] = None) -> Answer:
    return Answer(name=name, queried_type=rtype, server=server, error=describe_error(error))
