"""Terminal front end for the dnsLookup API."""
from __future__ import annotations

import argparse
import asyncio
import os
import sys
from typing import List, Optional

from rich.console import Console
from rich.json import JSON
from rich.table import Table
from rich.traceback import install as install_rich_traceback

from dnsLookup.client.form import EXAMPLE_DOMAINS, NAMESERVERS, RECORD_TYPES, LookupForm
from dnsLookup.client.session import LookupSession
from dnsLookup.client.state import QueryStateMachine
from dnsLookup.lookup.models import Record

install_rich_traceback()
console = Console()

TTL_PLACEHOLDER = "-"


def render_records(records: List[Record], machine: QueryStateMachine) -> Table:
    info = machine.query_info
    caption = []
    if info.server:
        caption.append(f"server {info.server}")
    if info.transport:
        caption.append(info.transport.upper())
    if info.dnssec is not None:
        caption.append(f"DNSSEC: {'Yes' if info.dnssec else 'No'}")
    if info.time is not None:
        caption.append(f"{info.time}ms")

    plural = "" if len(records) == 1 else "s"
    table = Table(title=f"Found {len(records)} record{plural}", caption=" | ".join(caption))
    table.add_column("Type", style="bold")
    table.add_column("Name")
    table.add_column("Content", overflow="fold")
    table.add_column("TTL", justify="right")
    for record in records:
        ttl = f"{record.ttl:,}" if record.ttl is not None else TTL_PLACEHOLDER
        table.add_row(record.type, record.name, record.content, ttl)
    return table


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Query DNS records through the dnsLookup API")
    parser.add_argument("domain", nargs="?", help=f"Domain to look up (e.g. {', '.join(EXAMPLE_DOMAINS)})")
    parser.add_argument(
        "--nameserver",
        default="8.8.8.8",
        help="Resolver IP, DoH URL or 'authoritative' "
        f"(offered: {', '.join(opt.value for opt in NAMESERVERS if opt.value != 'custom')})",
    )
    parser.add_argument(
        "--type",
        dest="types",
        action="append",
        type=str.upper,
        choices=[opt.id for opt in RECORD_TYPES],
        metavar="TYPE",
        help="Record type to query; repeat for several (default: popular types)",
    )
    parser.add_argument("--dnssec", action="store_true", help="Request DNSSEC records and set the DO flag")
    parser.add_argument("--transport", choices=["tcp", "doh"], default="tcp")
    parser.add_argument("--raw", action="store_true", help="Also print the raw per-type answers")
    parser.add_argument(
        "--api-base",
        default=os.getenv("DNSLOOKUP_API_BASE", "http://localhost:8000"),
        help="Base URL of the dnsLookup API",
    )
    return parser.parse_args(argv)


def build_form(args: argparse.Namespace) -> LookupForm:
    form = LookupForm(domain=args.domain or "", dnssec=args.dnssec)
    if args.nameserver in {opt.value for opt in NAMESERVERS}:
        form.select_nameserver(args.nameserver)
    else:
        form.select_nameserver("custom")
        form.custom_nameserver = args.nameserver
    if args.types:
        form.record_types = list(dict.fromkeys(args.types))
    if form.is_authoritative and args.transport == "doh":
        console.print("[yellow]DoH is not offered for authoritative queries; using TCP.")
    else:
        form.transport = args.transport
    return form


async def run(args: argparse.Namespace) -> int:
    form = build_form(args)
    async with LookupSession(args.api_base) as session:
        with console.status(f"Looking up {form.domain}..."):
            ok = await session.submit(form)

    machine = session.machine
    if not ok:
        error = machine.take_error() or "Domain, nameserver and at least one record type are required"
        console.print(f"[red]DNS Lookup Failed:[/red] {error}")
        return 1

    if args.raw and machine.raw_data:
        console.rule("Raw DNS Answers")
        payload = [answer.model_dump(by_alias=True, mode="json") for answer in machine.raw_data]
        console.print(JSON.from_data(payload))
    if machine.results:
        console.print(render_records(machine.results, machine))
    else:
        console.print("No DNS records found. Try a different query or record type.")
    return 0


def main() -> None:
    sys.exit(asyncio.run(run(parse_args())))


if __name__ == "__main__":
    main()
