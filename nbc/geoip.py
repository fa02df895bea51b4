"""Geo-IP and subnet classification of discovered peers."""

import ipaddress
import logging

import geoip2.database
import geoip2.errors

from nbc.config import NbcConfig
from nbc.models import CrawlResult, PeerLocation

logger = logging.getLogger(__name__)

PRIVATE_COUNTRY = "Private"
UNKNOWN_COUNTRY = "Unknown"


def is_private(address: str) -> bool:
    """Return True if *address* is an IP in a private or reserved range.

    Hostnames and other unparsable addresses are not private.
    """
    try:
        return ipaddress.ip_address(address).is_private
    except ValueError:
        return False


class GeoIPReader:
    """Wrapper around a MaxMind GeoLite2 country database reader.

    The reader is tolerant of a missing database file: if the path is
    ``None`` or points to a non-existent file, lookups simply return
    ``None``.  Both GeoLite2-Country and GeoLite2-City databases work.

    Args:
        country_db_path: Path to a GeoLite2 ``.mmdb`` file, or ``None``.
    """

    def __init__(self, country_db_path: str | None = None) -> None:
        self._reader: geoip2.database.Reader | None = None
        self._city_db = False

        if country_db_path:
            try:
                self._reader = geoip2.database.Reader(country_db_path)
                # City databases reject country() lookups.
                self._city_db = "City" in self._reader.metadata().database_type
                logger.debug("Opened GeoLite2 DB: %s", country_db_path)
            except FileNotFoundError:
                logger.warning(
                    "GeoLite2 DB not found at %s; country attribution disabled",
                    country_db_path,
                )

    def close(self) -> None:
        """Close the underlying database reader."""
        if self._reader:
            self._reader.close()

    def lookup_country(self, ip: str) -> dict | None:
        """Look up the country of an IP address.

        Args:
            ip: IPv4 or IPv6 address string.

        Returns:
            A dict with keys ``country`` and ``country_code``; or ``None`` if
            the lookup fails.
        """
        if not self._reader:
            return None
        try:
            if self._city_db:
                resp = self._reader.city(ip)
            else:
                resp = self._reader.country(ip)
        except (geoip2.errors.AddressNotFoundError, ValueError):
            logger.debug("Country lookup failed for %s", ip)
            return None

        return {
            "country": resp.country.name,
            "country_code": resp.country.iso_code,
        }


def classify(result: CrawlResult, config: NbcConfig) -> list[PeerLocation]:
    """Classify every found peer by subnet and country.

    Private addresses are labelled ``"Private"``; addresses the database
    cannot attribute are labelled ``"Unknown"``.

    Args:
        result: Finished crawl result.
        config: Configuration holding the MaxMind database path.

    Returns:
        One ``PeerLocation`` per found address, sorted by address.
    """
    reader = GeoIPReader(config.maxmind_country_db)

    try:
        peers = [
            _classify_peer(address, address in result.responsive, reader)
            for address in sorted(result.found)
        ]
    finally:
        reader.close()

    return peers


def _classify_peer(address: str, responsive: bool, reader: GeoIPReader) -> PeerLocation:
    peer = PeerLocation(address=address, responsive=responsive)

    if is_private(address):
        peer.is_private = True
        peer.country = PRIVATE_COUNTRY
        return peer

    country_data = reader.lookup_country(address)
    if country_data and country_data["country"]:
        peer.country = country_data["country"]
        peer.country_code = country_data["country_code"]
    else:
        peer.country = UNKNOWN_COUNTRY
    return peer
