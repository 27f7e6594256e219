from pydantic import ValidationError

from pricing import utils
from pricing.logging import get_logger
from pricing.redis import Redis, store_errors
from pricing.schemas.quotes import Quote, QuoteKey
from pricing.settings import Settings

logger = get_logger(__name__)


class QuoteCache:
    def __init__(self, settings: Settings, redis_pool: Redis) -> None:
        self.settings = settings
        self.redis_pool = redis_pool

    async def get(self, key: QuoteKey) -> Quote | None:
        with store_errors():
            data = await self.redis_pool.get(key.cache_key)
        if not data:
            return None
        try:
            return Quote.model_validate_json(data)
        except ValidationError:
            logger.warning(f"Discarding malformed cached quote for {key}")
            return None

    async def put(self, key: QuoteKey, quote: Quote, ttl: int | None = None) -> None:
        with store_errors():
            await self.redis_pool.set(key.cache_key, quote.model_dump_json(), ex=ttl or self.settings.QUOTE_CACHE_TTL)

    def age(self, quote: Quote) -> int:
        return utils.time.timestamp() - quote.timestamp

    def is_fresh(self, quote: Quote, max_age: int | None = None) -> bool:
        if max_age is None:
            max_age = self.settings.REFRESH_SKIP_AGE
        return self.age(quote) < max_age
