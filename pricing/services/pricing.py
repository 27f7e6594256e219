import asyncio
from collections import defaultdict

from pricing.logging import get_logger
from pricing.schemas.quotes import QuotaStatus, Quote, QuoteKey
from pricing.services.quota import QuotaTracker
from pricing.services.quote_cache import QuoteCache
from pricing.services.quote_fetcher import QuoteFetcher

logger = get_logger(__name__)


class PricingService:
    def __init__(self, quota_tracker: QuotaTracker, quote_cache: QuoteCache, quote_fetcher: QuoteFetcher) -> None:
        self.quota_tracker = quota_tracker
        self.quote_cache = quote_cache
        self.quote_fetcher = quote_fetcher
        self.locks: dict[QuoteKey, asyncio.Lock] = {}
        self.waiters: defaultdict[QuoteKey, int] = defaultdict(int)

    async def get_quote(self, token: str, fiat: str, side: str | None = None) -> Quote:
        key = QuoteKey.create(token, fiat, side)
        quote = await self.quote_cache.get(key)
        if quote is not None:
            return quote
        # concurrent misses on the same key wait for the first fetch instead of calling upstream again
        lock = self.locks.setdefault(key, asyncio.Lock())
        self.waiters[key] += 1
        try:
            async with lock:
                quote = await self.quote_cache.get(key)
                if quote is not None:
                    return quote
                logger.info(f"Cache miss for {key}, fetching inline")
                quote = await self.quote_fetcher.fetch(key.token, key.fiat, key.side)
                await self.quote_cache.put(key, quote)
                return quote
        finally:
            # the lock is dropped only once nobody holds or waits for it
            self.waiters[key] -= 1
            if not self.waiters[key]:
                del self.waiters[key]
                del self.locks[key]

    async def get_quota_status(self) -> QuotaStatus:
        return await self.quota_tracker.get_status()

    async def reset_quota(self, value: int = 0) -> QuotaStatus:
        await self.quota_tracker.reset(value)
        return await self.quota_tracker.get_status()
