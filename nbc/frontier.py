"""Frontier engine: bounded-concurrency recursive neighbor crawl."""

import asyncio
import logging
import time
from collections import deque
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from nbc.client import PeerQueryClient
from nbc.config import DEFAULT_RPC_PORT, NbcConfig
from nbc.dedup import merge, reconcile
from nbc.models import NULL_ADDRESS, CrawlResult, CrawlState, QueryResult
from nbc.resolver import candidate_endpoints

logger = logging.getLogger(__name__)


@runtime_checkable
class QueryClient(Protocol):
    """Anything that can fetch one peer's neighbor listing."""

    async def query(self, address: str) -> QueryResult: ...


class CrawlAbortedError(Exception):
    """Raised when an unexpected error escapes a query task.

    Unresponsive peers never cause this; it signals a defect, and the
    original exception is chained as ``__cause__``.
    """


class FrontierEngine:
    """Crawl scheduler that owns the crawl state and decides termination.

    Addresses move from *discovered* (in ``found``) to *querying* (claimed
    into ``queried`` and queued) to *done* (query task completed).  Claiming
    happens synchronously before any awaited work, so no address is ever
    dispatched twice.  Each completion merges its neighbors into ``found``
    and expands the frontier before the next completion is handled, so the
    crawl ends exactly when nothing is pending and nothing is in flight,
    at which point ``found == queried``.

    Args:
        client: A ``QueryClient``, usually a ``PeerQueryClient``.
        seeds: Addresses the crawl starts from.
        concurrency: Maximum number of queries in flight at once.
        rpc_port: Default RPC port, used to strip seed endpoint forms.
    """

    def __init__(
        self,
        client: QueryClient,
        seeds: Iterable[str],
        *,
        concurrency: int = 250,
        rpc_port: int = DEFAULT_RPC_PORT,
    ) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self.client = client
        self.seeds = tuple(seeds)
        self.concurrency = concurrency
        self.rpc_port = rpc_port
        self.state = CrawlState()
        self.peak_in_flight = 0
        self._pending: deque[str] = deque()
        self._running: dict[asyncio.Task, str] = {}

    def expand_frontier(self) -> int:
        """Claim every unqueried address and queue it for dispatch.

        Returns:
            Number of addresses newly queued.
        """
        fresh = self.state.unqueried()
        for address in fresh:
            self.state.queried.add(address)
            self._pending.append(address)
        return len(fresh)

    async def run(self) -> CrawlResult:
        """Crawl until the frontier is exhausted and return the result.

        Raises:
            CrawlAbortedError: If a query task raised unexpectedly.
        """
        t0 = time.monotonic()
        self.state.found.update(self.seeds)
        self.expand_frontier()
        logger.info(
            "Crawl started from %d seed(s), concurrency=%d",
            len(self.seeds),
            self.concurrency,
        )

        while self._pending or self._running:
            self._dispatch()
            done, _ = await asyncio.wait(
                self._running, return_when=asyncio.FIRST_COMPLETED
            )
            for task in done:
                address = self._running.pop(task)
                exc = task.exception()
                if exc is not None:
                    await self._abort()
                    raise CrawlAbortedError(
                        f"Query task for {address} failed: {exc!r}"
                    ) from exc
                self._complete(task.result())

        result = self._finish(time.monotonic() - t0)
        logger.info(
            "Crawl finished in %.1fs: %d peers found, %d responsive, %d unreachable",
            result.duration_seconds,
            len(result.found),
            len(result.responsive),
            len(result.unresponsive),
        )
        return result

    def _dispatch(self) -> None:
        """Start pending queries until the concurrency bound is reached."""
        while self._pending and len(self._running) < self.concurrency:
            address = self._pending.popleft()
            task = asyncio.create_task(self.client.query(address))
            self._running[task] = address
        self.peak_in_flight = max(self.peak_in_flight, len(self._running))

    def _complete(self, result: QueryResult) -> None:
        """Fold one query result into the crawl state and expand."""
        state = self.state
        state.found.update(result.neighbor_addresses)
        merge(state.identities, result.neighbor_identities)
        if result.responsive:
            state.responsive.add(result.address)
        queued = self.expand_frontier()
        logger.debug(
            "Done %s: %d neighbors, %d new; %d/%d queried, %d in flight",
            result.address,
            len(result.neighbor_addresses),
            queued,
            len(state.queried),
            len(state.found),
            len(self._running),
        )

    async def _abort(self) -> None:
        for task in self._running:
            task.cancel()
        await asyncio.gather(*self._running, return_exceptions=True)
        self._running.clear()
        self._pending.clear()

    def _finish(self, duration: float) -> CrawlResult:
        """Strip seeds and the null address, reconcile, and freeze."""
        state = self.state
        excluded = {NULL_ADDRESS}
        for seed in self.seeds:
            excluded.add(seed)
            excluded.update(candidate_endpoints(seed, self.rpc_port))

        return CrawlResult(
            seeds=self.seeds,
            found=frozenset(state.found - excluded),
            queried=frozenset(state.queried - excluded),
            responsive=frozenset(state.responsive - excluded),
            identities=reconcile(state.identities),
            duration_seconds=duration,
            peak_in_flight=self.peak_in_flight,
        )


async def crawl(config: NbcConfig) -> CrawlResult:
    """Run a full crawl with a live HTTP client built from *config*."""
    async with PeerQueryClient(config) as client:
        engine = FrontierEngine(
            client,
            config.seeds,
            concurrency=config.concurrency,
            rpc_port=config.rpc_port,
        )
        return await engine.run()
