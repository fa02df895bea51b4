"""Aggregator: peer counts and country distribution for the census report."""

import logging

from nbc.models import CensusReport, CrawlResult, PeerLocation

logger = logging.getLogger(__name__)


def country_distribution(peers: list[PeerLocation]) -> list[tuple[str, int]]:
    """Count peers per country.

    Args:
        peers: Classified peers.

    Returns:
        ``(country, count)`` pairs sorted by count descending, then by name.
    """
    counts: dict[str, int] = {}
    for peer in peers:
        if peer.country:
            counts[peer.country] = counts.get(peer.country, 0) + 1

    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))


def aggregate(peers: list[PeerLocation], result: CrawlResult) -> CensusReport:
    """Build the census report from classified peers and the crawl result.

    Args:
        peers: Output of ``geoip.classify`` for *result*.
        result: Finished crawl result.

    Returns:
        A ``CensusReport`` with summary counts and country distribution.
    """
    counts = {
        "found": len(result.found),
        "responsive": len(result.responsive),
        "unreachable": len(result.unresponsive),
        "private": sum(1 for p in peers if p.is_private),
        "identities": len(result.identities),
    }
    logger.debug("Aggregated counts: %s", counts)

    return CensusReport(
        peers=peers,
        identities=sorted(result.identities.values(), key=lambda r: r.identity_key),
        country_distribution=country_distribution(peers),
        counts=counts,
        duration_seconds=result.duration_seconds,
    )
