"""Neighbor identity merging and post-crawl reconciliation."""

import logging

from nbc.models import NeighborRecord

logger = logging.getLogger(__name__)


def merge(
    existing: dict[str, NeighborRecord],
    incoming: dict[str, NeighborRecord],
) -> dict[str, NeighborRecord]:
    """Insert identities from *incoming* that *existing* does not have yet.

    The first record seen for an identity key wins; later records under the
    same key are ignored.

    Args:
        existing: Identity map to update in place.
        incoming: Identities reported by one query.

    Returns:
        *existing*, for chaining.
    """
    for key, record in incoming.items():
        if key in existing:
            continue
        existing[key] = record
        logger.debug(
            "New identity %s (network_id=%s, version=%s, authenticated=%s)",
            key,
            record.network_id,
            record.peer_version,
            record.authenticated,
        )
    return existing


def reconcile(identities: dict[str, NeighborRecord]) -> dict[str, NeighborRecord]:
    """Drop anonymous records for IPs that also have an identified record.

    A record is anonymous when its public key hash is zero or its IP is
    ``0.0.0.0``.  Anonymous records for an IP that has no identified record
    are kept, since they are the only evidence of that peer.

    Args:
        identities: Identity map accumulated during the crawl.

    Returns:
        A new identity map; *identities* is left untouched.
    """
    identified_ips = {
        record.ip for record in identities.values() if not record.is_anonymous
    }

    reconciled: dict[str, NeighborRecord] = {}
    dropped = 0
    for key, record in identities.items():
        if record.is_anonymous and record.ip in identified_ips:
            dropped += 1
            continue
        reconciled[key] = record

    if dropped:
        logger.debug("Reconciled away %d anonymous identity record(s)", dropped)
    return reconciled
