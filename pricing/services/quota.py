from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from redis import WatchError

from pricing import utils
from pricing.constants import API_PERIOD_KEY, API_USAGE_KEY
from pricing.exceptions import QuotaExceededError
from pricing.logging import get_logger
from pricing.redis import Redis, store_errors
from pricing.schemas.quotes import QuotaStatus
from pricing.settings import Settings

logger = get_logger(__name__)


class QuotaTracker:
    """Monthly budget of upstream calls, persisted in redis.

    The usage counter and the period marker both expire at the next period boundary,
    so a counter that is never explicitly rolled over still resets. Rollover itself is
    lazy: every read or write first compares the stored period with the wall clock.
    """

    def __init__(self, settings: Settings, redis_pool: Redis) -> None:
        self.settings = settings
        self.redis_pool = redis_pool

    @property
    def limit(self) -> int:
        return self.settings.MONTHLY_API_LIMIT

    def current_period(self) -> str:
        return utils.time.current_period()

    async def check_rollover(self) -> str:
        period = self.current_period()
        with store_errors():
            stored_period = await self.redis_pool.get(API_PERIOD_KEY)
            if stored_period == period:
                return period
            async with self.redis_pool.pipeline(transaction=True) as pipe:
                pipe.delete(API_USAGE_KEY)
                pipe.set(API_PERIOD_KEY, period, ex=utils.time.seconds_until_next_period())
                await pipe.execute()
        logger.info(f"Period changed from {stored_period} to {period}, API usage counter reset")
        return period

    async def used(self) -> int:
        await self.check_rollover()
        with store_errors():
            usage = await self.redis_pool.get(API_USAGE_KEY)
        return max(0, int(usage)) if usage else 0

    @property
    def allowed(self) -> int:
        return self.limit - self.settings.QUOTA_SAFETY_MARGIN

    async def remaining(self) -> int:
        return max(0, self.limit - await self.used())

    async def available(self) -> int:
        """Calls that can still be reserved, the safety margin excluded"""
        return max(0, self.allowed - await self.used())

    async def record_call(self) -> int:
        period = await self.check_rollover()
        return await self.increment(period)

    async def increment(self, period: str) -> int:
        with store_errors():
            used = await self.redis_pool.incr(API_USAGE_KEY)
            if used == 1:
                ttl = utils.time.seconds_until_next_period()
                await self.redis_pool.expire(API_USAGE_KEY, ttl)
                logger.info(f"API counter initialized for period {period}, expires in {ttl // 86400} days")
        logger.debug(f"API calls this period: {used}/{self.limit}")
        return used

    async def release_call(self, period: str) -> None:
        """Give back a call reserved in `period`, unless the counter has rolled over since"""
        with store_errors():
            async with self.redis_pool.pipeline(transaction=True) as pipe:
                try:
                    await pipe.watch(API_PERIOD_KEY)
                    if await pipe.get(API_PERIOD_KEY) == period:
                        pipe.multi()
                        pipe.decr(API_USAGE_KEY)
                        await pipe.execute()
                        return
                except WatchError:
                    pass
        logger.info(f"Not releasing call reserved in {period}, the counter has rolled over")

    @asynccontextmanager
    async def reserve(self) -> AsyncIterator[int]:
        """Reserve one upstream call, yielding the calls left after it.

        The reservation is an atomic increment compared against the limit, so concurrent
        callers can't overshoot it. It is given back if the limit is hit or if the body raises.
        """
        period = await self.check_rollover()
        used = await self.increment(period)
        if used > self.allowed:
            await self.release_call(period)
            raise QuotaExceededError(
                f"Monthly API limit reached ({used - 1}/{self.limit} calls used). Please try again next period."
            )
        try:
            yield self.limit - used
        except BaseException:
            await self.release_call(period)
            raise

    async def reset(self, value: int = 0) -> None:
        await self.check_rollover()
        with store_errors():
            await self.redis_pool.set(API_USAGE_KEY, value, ex=utils.time.seconds_until_next_period())
        logger.warning(f"API usage counter manually set to {value}/{self.limit}")

    async def get_status(self) -> QuotaStatus:
        used = await self.used()
        return QuotaStatus(
            used=used,
            remaining=max(0, self.limit - used),
            available=max(0, self.allowed - used),
            limit=self.limit,
            percentage_used=round(used / self.limit * 100),
        )
