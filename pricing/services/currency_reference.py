import json

from pricing.constants import REFERENCE_CURRENCIES_KEY
from pricing.exceptions import PricingError, UnsupportedTokenError
from pricing.ext.providers import BaseQuoteProvider
from pricing.logging import get_exception_message, get_logger
from pricing.redis import Redis, store_errors
from pricing.settings import Settings

logger = get_logger(__name__)


class CurrencyReference:
    """Symbol to provider identifier lookups.

    Seeded from settings, then extended with the provider's reference currency list
    (restored from redis when cached). Entries are only ever added.
    """

    def __init__(self, settings: Settings, redis_pool: Redis, provider: BaseQuoteProvider) -> None:
        self.settings = settings
        self.redis_pool = redis_pool
        self.provider = provider
        self.currency_ids: dict[str, str] = dict(settings.CURRENCY_IDS)
        self.coin_ids: dict[str, str] = dict(settings.COIN_IDS)

    async def load(self) -> None:
        with store_errors():
            cached = await self.redis_pool.get(REFERENCE_CURRENCIES_KEY)
        if cached:
            self.update(json.loads(cached))
            logger.info(f"Restored {len(self.currency_ids)} reference currencies from cache")
            return
        await self.refresh()

    async def refresh(self) -> None:
        try:
            currencies = await self.provider.get_reference_currencies()
        except PricingError as e:
            logger.error(f"Error fetching reference currencies:{get_exception_message(e)}")
            return
        self.update(currencies)
        with store_errors():
            await self.redis_pool.set(
                REFERENCE_CURRENCIES_KEY, json.dumps(self.currency_ids), ex=self.settings.REFERENCE_CACHE_TTL
            )
        logger.info(f"Fetched and cached {len(self.currency_ids)} reference currencies")

    def update(self, currencies: dict[str, str]) -> None:
        for symbol, currency_id in currencies.items():
            self.currency_ids.setdefault(symbol.upper(), currency_id)

    def resolve_fiat(self, fiat: str) -> str:
        currency_id = self.currency_ids.get(fiat)
        if currency_id is None:
            logger.warning(f"No reference currency for {fiat}, falling back to {self.settings.DEFAULT_FIAT}")
            currency_id = self.currency_ids[self.settings.DEFAULT_FIAT]
        return currency_id

    def resolve_token(self, token: str) -> str:
        coin_id = self.coin_ids.get(token)
        if coin_id is None:
            raise UnsupportedTokenError(f"Unsupported token: {token}")
        return coin_id
