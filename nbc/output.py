"""Output renderer: rich table formatter, JSON formatter, format dispatch."""

import dataclasses
import json
import logging
import sys
from io import StringIO

from rich.console import Console
from rich.table import Table

from nbc.models import CensusReport

logger = logging.getLogger(__name__)

_PEER_COLUMNS = [
    ("Address", "address"),
    ("Responsive", "responsive"),
    ("Private", "is_private"),
    ("Country", "country"),
    ("Code", "country_code"),
]

_IDENTITY_COLUMNS = [
    ("IP", "ip"),
    ("Port", "port"),
    ("Public key hash", "public_key_hash"),
    ("Network", "network_id"),
    ("Version", "peer_version"),
    ("Auth", "authenticated"),
]


def render(
    report: CensusReport,
    fmt: str,
    *,
    file: object | None = None,
    width: int | None = None,
) -> None:
    """Dispatch output to the appropriate formatter.

    Args:
        report: Census report to render.
        fmt: Output format, ``"table"`` or ``"json"``.
        file: Writable file object for output (default: ``sys.stdout``).
        width: Explicit console width (default: auto-detect).

    Raises:
        ValueError: If *fmt* is not ``"table"`` or ``"json"``.
    """
    if fmt == "table":
        render_table(report, file=file, width=width)
    elif fmt == "json":
        render_json(report, file=file)
    else:
        raise ValueError(f"Unknown output format: {fmt!r}")


# ---------------------------------------------------------------------------
# Table (rich) formatter
# ---------------------------------------------------------------------------


def render_table(
    report: CensusReport,
    *,
    file: object | None = None,
    width: int | None = None,
) -> None:
    """Render *report* as ``rich`` tables: peers, identities, countries, summary."""
    out = file or sys.stdout
    console = Console(file=out, highlight=False, width=width)

    peers = Table(title=f"Peers — {len(report.peers)} found")
    for header, _ in _PEER_COLUMNS:
        peers.add_column(header)
    for peer in report.peers:
        peers.add_row(*[_fmt(getattr(peer, attr)) for _, attr in _PEER_COLUMNS])
    console.print(peers)

    if report.identities:
        identities = Table(title=f"Identities — {len(report.identities)}")
        for header, _ in _IDENTITY_COLUMNS:
            identities.add_column(header)
        for record in report.identities:
            identities.add_row(
                *[_fmt(getattr(record, attr)) for _, attr in _IDENTITY_COLUMNS]
            )
        console.print(identities)

    if report.country_distribution:
        t = Table(title="Countries")
        t.add_column("Country")
        t.add_column("Peers", justify="right")
        for country, count in report.country_distribution:
            t.add_row(country, str(count))
        console.print(t)

    counts = report.counts
    console.print(
        f"  {counts.get('found', 0)} peers, "
        f"{counts.get('responsive', 0)} responsive, "
        f"{counts.get('unreachable', 0)} unreachable, "
        f"{counts.get('private', 0)} private, "
        f"{counts.get('identities', 0)} identities "
        f"in {report.duration_seconds:.1f}s"
    )


# ---------------------------------------------------------------------------
# JSON formatter
# ---------------------------------------------------------------------------


def render_json(report: CensusReport, *, file: object | None = None) -> None:
    """Render *report* as a JSON object to *file*."""
    out = file or sys.stdout
    payload = {
        "counts": report.counts,
        "duration_seconds": report.duration_seconds,
        "country_distribution": [
            {"country": country, "count": count}
            for country, count in report.country_distribution
        ],
        "peers": [dataclasses.asdict(p) for p in report.peers],
        "identities": [dataclasses.asdict(r) for r in report.identities],
    }
    json.dump(payload, out, indent=2, default=str)
    out.write("\n")  # type: ignore[union-attr]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _fmt(value: object) -> str:
    """Format a field value for table display.

    ``None`` becomes ``"—"``, booleans become ``yes``/``no``.
    """
    if value is None:
        return "—"
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


def render_to_string(report: CensusReport, fmt: str, *, width: int = 200) -> str:
    """Render to a string instead of stdout, for tests.

    Args:
        report: Census report to render.
        fmt: Output format, ``"table"`` or ``"json"``.
        width: Console width for table rendering (default: 200).

    Returns:
        The rendered output as a string.
    """
    buf = StringIO()
    render(report, fmt, file=buf, width=width)
    return buf.getvalue()
