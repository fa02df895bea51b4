"""Data models: neighbor records, query results, crawl state and census report."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

NULL_ADDRESS = "0.0.0.0"


class ResponseError(Exception):
    """Raised when a neighbor-listing payload cannot be interpreted."""


@dataclass(frozen=True)
class NeighborRecord:
    """Identity of one peer as reported in another peer's neighbor listing.

    Reporting peers sometimes know little about a neighbor, in which case
    the public key hash is all zeros or the IP is ``0.0.0.0``.  Such records
    are *anonymous* and get reconciled away once a better-identified record
    for the same IP is known.

    Attributes:
        ip: IPv4 or IPv6 address of the neighbor.
        public_key_hash: Hex-encoded hash of the neighbor's public key.
        port: Peer-to-peer port of the neighbor, if reported.
        network_id: Network identifier reported for the neighbor.
        peer_version: Protocol/version tag reported for the neighbor.
        authenticated: Whether the reporting peer authenticated the neighbor.
    """

    ip: str
    public_key_hash: str = ""
    port: int | None = None
    network_id: int | None = None
    peer_version: int | None = None
    authenticated: bool = False

    @property
    def identity_key(self) -> str:
        """Dedup key, ``ip@public_key_hash``."""
        return f"{self.ip}@{self.public_key_hash}"

    @property
    def is_anonymous(self) -> bool:
        """True for a null IP or a zero/empty public key hash."""
        if self.ip == NULL_ADDRESS or not self.public_key_hash:
            return True
        try:
            return int(self.public_key_hash, 16) == 0
        except ValueError:
            return False

    @classmethod
    def from_dict(cls, data: object) -> "NeighborRecord":
        """Build a record from one JSON object of a neighbor listing.

        Raises:
            ResponseError: If *data* is not a mapping or has no ``ip``.
        """
        if not isinstance(data, dict):
            raise ResponseError(f"Neighbor entry is not an object: {data!r}")
        ip = data.get("ip")
        if not isinstance(ip, str) or not ip:
            raise ResponseError(f"Neighbor entry has no ip: {data!r}")
        return cls(
            ip=ip,
            public_key_hash=str(data.get("public_key_hash") or ""),
            port=data.get("port"),
            network_id=data.get("network_id"),
            peer_version=data.get("peer_version"),
            authenticated=bool(data.get("authenticated", False)),
        )


@dataclass
class QueryResult:
    """Outcome of querying one peer across all its candidate endpoints.

    Attributes:
        address: The peer address that was queried.
        responsive: True if at least one try succeeded.
        neighbor_addresses: IPs of every neighbor reported by the peer.
        neighbor_identities: Reported neighbor records by identity key.
        attempts: Number of HTTP requests issued for this peer.
    """

    address: str
    responsive: bool = False
    neighbor_addresses: set[str] = field(default_factory=set)
    neighbor_identities: dict[str, NeighborRecord] = field(default_factory=dict)
    attempts: int = 0


@dataclass
class CrawlState:
    """Mutable crawl bookkeeping, owned by a single ``FrontierEngine``.

    Invariant: ``queried`` is always a subset of ``found``.
    """

    found: set[str] = field(default_factory=set)
    queried: set[str] = field(default_factory=set)
    responsive: set[str] = field(default_factory=set)
    identities: dict[str, NeighborRecord] = field(default_factory=dict)

    def unqueried(self) -> set[str]:
        """Addresses discovered but not yet claimed for dispatch."""
        return self.found - self.queried


@dataclass(frozen=True)
class CrawlResult:
    """Read-only snapshot of a finished crawl, after seed cleanup.

    Attributes:
        seeds: Seed addresses the crawl started from.
        found: Every discovered peer address.
        queried: Every address a query was dispatched for.
        responsive: Addresses that answered at least once.
        identities: Reconciled neighbor identities by identity key, as a
            read-only view over a private copy.
        duration_seconds: Wall-clock duration of the crawl.
        peak_in_flight: Highest number of simultaneously running queries.
    """

    seeds: tuple[str, ...]
    found: frozenset[str]
    queried: frozenset[str]
    responsive: frozenset[str]
    identities: Mapping[str, NeighborRecord]
    duration_seconds: float = 0.0
    peak_in_flight: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "identities", MappingProxyType(dict(self.identities)))

    @property
    def unresponsive(self) -> frozenset[str]:
        return self.found - self.responsive


@dataclass
class PeerLocation:
    """A discovered peer with subnet and country classification.

    Attributes:
        address: Peer address as discovered.
        responsive: Whether the peer answered its neighbor query.
        is_private: Whether the address falls in a private range.
        country: Country name, ``"Private"`` or ``"Unknown"``.
        country_code: ISO 3166-1 alpha-2 country code, if attributed.
    """

    address: str
    responsive: bool = False
    is_private: bool = False
    country: str | None = None
    country_code: str | None = None


@dataclass
class CensusReport:
    """Everything the output renderer needs to print a crawl summary.

    Attributes:
        peers: Classified peers sorted by address.
        identities: Reconciled neighbor identities.
        country_distribution: ``(country, count)`` pairs sorted by count
            descending.
        counts: Summary counters (found, responsive, unreachable, private,
            identities).
        duration_seconds: Wall-clock duration of the crawl.
    """

    peers: list[PeerLocation]
    identities: list[NeighborRecord] = field(default_factory=list)
    country_distribution: list[tuple[str, int]] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=dict)
    duration_seconds: float = 0.0
