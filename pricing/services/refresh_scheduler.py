import asyncio
import contextlib
import itertools
from dataclasses import dataclass

from pricing.logging import get_exception_message, get_logger
from pricing.schemas.quotes import QuoteKey
from pricing.services.quota import QuotaTracker
from pricing.services.quote_cache import QuoteCache
from pricing.services.quote_fetcher import QuoteFetcher
from pricing.settings import Settings
from pricing.utils.common import run_repeated
from pricing.utils.tasks import create_task

logger = get_logger(__name__)


@dataclass
class RefreshResult:
    required: int
    available: int
    gated: bool = False
    refreshed: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def calls_made(self) -> int:
        return self.refreshed


class RefreshScheduler:
    """Periodically refreshes the configured token/fiat pairs.

    A run is skipped entirely when the quota can't cover every pair, so that one run
    never leaves freshness half-updated because it ran out of calls midway.
    There is no retry inside a run; the next run is the retry.
    """

    def __init__(
        self,
        settings: Settings,
        quota_tracker: QuotaTracker,
        quote_cache: QuoteCache,
        quote_fetcher: QuoteFetcher,
    ) -> None:
        self.settings = settings
        self.quota_tracker = quota_tracker
        self.quote_cache = quote_cache
        self.quote_fetcher = quote_fetcher
        self.task: asyncio.Task[None] | None = None

    @property
    def pairs(self) -> list[QuoteKey]:
        return [
            QuoteKey.create(token, fiat)
            for token, fiat in itertools.product(self.settings.REFRESH_TOKENS, self.settings.REFRESH_FIATS)
        ]

    async def run(self) -> RefreshResult:
        logger.info("Refreshing prices...")
        pairs = self.pairs
        required = len(pairs)
        available = await self.quota_tracker.available()
        result = RefreshResult(required=required, available=available)
        logger.info(f"API calls available: {available}, required for refresh: {required}")
        if available < required:
            logger.warning(f"Insufficient API calls available ({available}/{required}). Skipping price refresh.")
            result.gated = True
            return result
        for key in pairs:
            await self.refresh_pair(key, result)
        logger.info(
            f"Prices refreshed. API calls made: {result.calls_made}, skipped: {result.skipped}, failed: {result.failed}"
        )
        return result

    async def refresh_pair(self, key: QuoteKey, result: RefreshResult) -> None:
        try:
            cached = await self.quote_cache.get(key)
            if cached is not None and self.quote_cache.is_fresh(cached):
                logger.info(f"Skipping {key} - recent cache available ({self.quote_cache.age(cached) // 60} minutes old)")
                result.skipped += 1
                return
            quote = await self.quote_fetcher.fetch(key.token, key.fiat, key.side)
            await self.quote_cache.put(key, quote)
            result.refreshed += 1
        except Exception as e:
            result.failed += 1
            logger.error(f"Failed refreshing {key}:{get_exception_message(e)}")

    async def start(self) -> None:
        self.task = create_task(run_repeated(self.run, self.settings.REFRESH_INTERVAL, initial_delay=0, logger=logger))

    async def stop(self) -> None:
        if self.task is None:
            return
        self.task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self.task
        self.task = None
