"""Tests for nbc.aggregator — census statistics."""

from conftest import make_record
from nbc.aggregator import aggregate, country_distribution
from nbc.models import CensusReport, CrawlResult, PeerLocation


def _make_peer(**overrides: object) -> PeerLocation:
    """Create a PeerLocation with sensible defaults, overridable per-field."""
    defaults: dict = {"address": "1.2.3.4", "responsive": True}
    defaults.update(overrides)
    return PeerLocation(**defaults)


def _result(**overrides: object) -> CrawlResult:
    defaults: dict = {
        "seeds": ("seed",),
        "found": frozenset({"1.0.0.1", "1.0.0.2", "10.0.0.1"}),
        "queried": frozenset({"1.0.0.1", "1.0.0.2", "10.0.0.1"}),
        "responsive": frozenset({"1.0.0.1"}),
        "identities": {},
        "duration_seconds": 3.5,
    }
    defaults.update(overrides)
    return CrawlResult(**defaults)


# ------------------------------------------------------------------
# country_distribution()
# ------------------------------------------------------------------


class TestCountryDistribution:
    def test_empty_list(self) -> None:
        assert country_distribution([]) == []

    def test_sorted_desc(self) -> None:
        peers = [
            _make_peer(address="1.0.0.1", country="Germany"),
            _make_peer(address="1.0.0.2", country="United States"),
            _make_peer(address="1.0.0.3", country="United States"),
            _make_peer(address="1.0.0.4", country="Germany"),
            _make_peer(address="1.0.0.5", country="Germany"),
        ]

        assert country_distribution(peers) == [
            ("Germany", 3),
            ("United States", 2),
        ]

    def test_ties_broken_by_name(self) -> None:
        peers = [
            _make_peer(address="1.0.0.1", country="Unknown"),
            _make_peer(address="1.0.0.2", country="France"),
        ]

        assert country_distribution(peers) == [("France", 1), ("Unknown", 1)]

    def test_peers_without_country_excluded(self) -> None:
        peers = [_make_peer(country=None), _make_peer(country="Germany")]

        assert country_distribution(peers) == [("Germany", 1)]


# ------------------------------------------------------------------
# aggregate()
# ------------------------------------------------------------------


class TestAggregate:
    def test_counts(self) -> None:
        peers = [
            _make_peer(address="1.0.0.1", country="Germany"),
            _make_peer(address="1.0.0.2", responsive=False, country="Unknown"),
            _make_peer(
                address="10.0.0.1", responsive=False, is_private=True, country="Private"
            ),
        ]
        record = make_record("1.0.0.1")

        report = aggregate(peers, _result(identities={record.identity_key: record}))

        assert isinstance(report, CensusReport)
        assert report.counts == {
            "found": 3,
            "responsive": 1,
            "unreachable": 2,
            "private": 1,
            "identities": 1,
        }
        assert report.duration_seconds == 3.5
        assert report.peers is peers

    def test_identities_sorted_by_key(self) -> None:
        records = [make_record("9.9.9.9"), make_record("1.1.1.1")]
        result = _result(identities={r.identity_key: r for r in records})

        report = aggregate([], result)

        assert [r.ip for r in report.identities] == ["1.1.1.1", "9.9.9.9"]

    def test_empty_crawl(self) -> None:
        empty = _result(
            found=frozenset(), queried=frozenset(), responsive=frozenset()
        )

        report = aggregate([], empty)

        assert report.counts["found"] == 0
        assert report.country_distribution == []
