from collections.abc import AsyncIterator, Iterator
from contextlib import contextmanager
from typing import cast

import redis.asyncio as _async_redis
from redis import ConnectionError as RedisConnectionError
from redis import RedisError
from redis import TimeoutError as RedisTimeoutError
from redis.asyncio.retry import Retry
from redis.backoff import default_backoff

from pricing.exceptions import StoreError
from pricing.settings import Settings

Redis = _async_redis.Redis


REDIS_RETRY_ON_ERRROR: list[type[RedisError]] = [RedisConnectionError, RedisTimeoutError]
REDIS_RETRY = Retry(default_backoff(), retries=3)


async def create_redis(settings: Settings) -> AsyncIterator[Redis]:
    redis = cast(
        Redis,
        _async_redis.Redis.from_url(
            settings.redis_url,
            decode_responses=True,
            retry_on_error=REDIS_RETRY_ON_ERRROR,
            retry=REDIS_RETRY,
        ),
    )
    yield redis
    await redis.aclose()


@contextmanager
def store_errors() -> Iterator[None]:
    try:
        yield
    except RedisError as e:
        raise StoreError(f"Store unavailable: {e}") from e


__all__ = [
    "Redis",
    "REDIS_RETRY_ON_ERRROR",
    "REDIS_RETRY",
    "create_redis",
    "store_errors",
]
