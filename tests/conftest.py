"""Shared fixtures: an in-memory peer network standing in for HTTP peers."""

import asyncio
from collections import Counter

import pytest

from nbc.models import NeighborRecord, QueryResult


def make_record(ip: str, key_hash: str = "ab12", **overrides: object) -> NeighborRecord:
    """Create a ``NeighborRecord`` with sensible defaults, overridable."""
    defaults: dict = {
        "ip": ip,
        "public_key_hash": key_hash,
        "port": 20444,
        "network_id": 1,
        "peer_version": 402653189,
        "authenticated": True,
    }
    defaults.update(overrides)
    return NeighborRecord(**defaults)


class FakeNetwork:
    """Async stand-in for ``PeerQueryClient`` backed by a topology dict.

    ``topology`` maps an address to the neighbor IPs it reports, or to
    ``None`` for a peer that never answers.  Unknown addresses are
    unreachable.  Every query yields to the event loop so that many
    queries overlap, and in-flight counts are tracked.
    """

    def __init__(self, topology: dict[str, list[str] | None], delay: float = 0) -> None:
        self.topology = topology
        self.delay = delay
        self.calls: Counter[str] = Counter()
        self.in_flight = 0
        self.max_in_flight = 0

    async def query(self, address: str) -> QueryResult:
        self.calls[address] += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            neighbors = self.topology.get(address)
            if neighbors is None:
                return QueryResult(address=address)
            records = {r.identity_key: r for r in map(make_record, neighbors)}
            return QueryResult(
                address=address,
                responsive=True,
                neighbor_addresses=set(neighbors),
                neighbor_identities=records,
            )
        finally:
            self.in_flight -= 1


@pytest.fixture
def scenario_a() -> FakeNetwork:
    """seedA -> {1.2.3.4 (dead), 5.6.7.8 -> seedA}."""
    return FakeNetwork(
        {
            "seedA": ["1.2.3.4", "5.6.7.8"],
            "1.2.3.4": None,
            "5.6.7.8": ["seedA"],
        }
    )
