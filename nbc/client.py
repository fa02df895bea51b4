"""Peer query client: retried neighbor-listing requests over aiohttp."""

import asyncio
import logging

import aiohttp

from nbc.config import NbcConfig
from nbc.models import NeighborRecord, QueryResult, ResponseError
from nbc.resolver import candidate_endpoints, neighbor_url

logger = logging.getLogger(__name__)

# Lists of the neighbor-listing payload that carry neighbor records.
NEIGHBOR_LISTS = ("sample", "inbound", "outbound")


class PeerQueryClient:
    """Queries a single peer's neighbor listing across its candidate endpoints.

    Every candidate endpoint gets exactly ``retries + 1`` tries.  Tries keep
    going after a success, since each listing is a sample and repeated
    queries surface more neighbors.  Transient failures are logged and never
    raised; anything else propagates to the caller.

    Use as an async context manager so the underlying
    ``aiohttp.ClientSession`` is opened and closed with the crawl::

        async with PeerQueryClient(config) as client:
            result = await client.query("1.2.3.4")

    Args:
        config: Crawl configuration (retry budget, timeout, delay, port).
        session: Optional pre-built session; the client then does not own
            or close it.
    """

    def __init__(
        self,
        config: NbcConfig,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.retries = config.retries
        self.retry_delay = config.retry_delay
        self.rpc_port = config.rpc_port
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "PeerQueryClient":
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def query(self, address: str) -> QueryResult:
        """Query *address* and collect every neighbor it reports.

        Args:
            address: Peer address, optionally carrying a port.

        Returns:
            A ``QueryResult``; ``responsive`` is False when no try succeeded.
        """
        result = QueryResult(address=address)
        tries = self.retries + 1

        for endpoint in candidate_endpoints(address, self.rpc_port):
            url = neighbor_url(endpoint)
            for attempt in range(1, tries + 1):
                result.attempts += 1
                logger.debug("Querying %s (try %d/%d)", url, attempt, tries)
                try:
                    payload = await self._fetch_neighbors(url)
                    records = parse_neighbors(payload)
                except (aiohttp.ClientError, asyncio.TimeoutError, ResponseError) as exc:
                    logger.info(
                        "Neighbors RPC failed for %s: %s",
                        endpoint,
                        _describe(exc),
                    )
                    if attempt < tries:
                        await asyncio.sleep(self.retry_delay)
                    continue

                result.responsive = True
                for record in records:
                    result.neighbor_addresses.add(record.ip)
                    result.neighbor_identities.setdefault(record.identity_key, record)

        if result.responsive:
            logger.debug(
                "Peer %s has %d neighbors", address, len(result.neighbor_addresses)
            )
        else:
            logger.info(
                "Peer %s unresponsive after %d tries", address, result.attempts
            )
        return result

    async def _fetch_neighbors(self, url: str) -> object:
        """Issue one GET against *url* and return the decoded JSON body.

        Raises:
            aiohttp.ClientError: On connection failure or non-2xx status.
            asyncio.TimeoutError: When the request exceeds its timeout.
            ResponseError: When the body is not valid JSON.
        """
        if self._session is None:
            raise RuntimeError("PeerQueryClient used outside 'async with'")
        async with self._session.get(url, timeout=self._timeout) as resp:
            resp.raise_for_status()
            try:
                return await resp.json(content_type=None)
            except ValueError as exc:
                raise ResponseError(f"Malformed JSON from {url}: {exc}") from exc


def parse_neighbors(payload: object) -> list[NeighborRecord]:
    """Extract neighbor records from a decoded neighbor-listing payload.

    Records from the ``sample``, ``inbound`` and ``outbound`` lists are
    concatenated; a missing list counts as empty.

    Raises:
        ResponseError: If the payload or one of its entries is malformed.
    """
    if not isinstance(payload, dict):
        raise ResponseError(
            f"Expected a JSON object, got {type(payload).__name__}"
        )

    records: list[NeighborRecord] = []
    for name in NEIGHBOR_LISTS:
        entries = payload.get(name) or []
        if not isinstance(entries, list):
            raise ResponseError(f"Field {name!r} is not a list")
        records.extend(NeighborRecord.from_dict(entry) for entry in entries)
    return records


def _describe(exc: BaseException) -> str:
    # asyncio.TimeoutError carries no message.
    return str(exc) or type(exc).__name__
