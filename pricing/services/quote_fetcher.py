from pricing.ext.providers import BaseQuoteProvider
from pricing.logging import get_logger
from pricing.schemas.quotes import FiatSubstitutionRule, Quote
from pricing.services.currency_reference import CurrencyReference
from pricing.services.quota import QuotaTracker
from pricing.settings import Settings

logger = get_logger(__name__)


class QuoteFetcher:
    def __init__(
        self,
        settings: Settings,
        provider: BaseQuoteProvider,
        quota_tracker: QuotaTracker,
        currency_reference: CurrencyReference,
    ) -> None:
        self.settings = settings
        self.provider = provider
        self.quota_tracker = quota_tracker
        self.currency_reference = currency_reference

    @property
    def substitutions(self) -> dict[str, FiatSubstitutionRule]:
        return self.settings.FIAT_SUBSTITUTIONS

    async def fetch(self, token: str, fiat: str, side: str | None = None) -> Quote:
        if fiat in self.substitutions:
            return await self.fetch_substituted(token, fiat, side)
        return await self.fetch_direct(token, fiat, side)

    async def fetch_direct(self, token: str, fiat: str, side: str | None = None) -> Quote:
        coin_id = self.currency_reference.resolve_token(token)
        reference_id = self.currency_reference.resolve_fiat(fiat)
        async with self.quota_tracker.reserve() as remaining:
            logger.info(f"Making API call for {token}/{fiat} ({remaining} calls remaining)")
            quote = await self.provider.get_price(coin_id, reference_id, side)
        logger.debug(f"{self.provider.name} price for {token}/{fiat} (id {reference_id}): {quote.price}")
        return quote

    async def fetch_substituted(self, token: str, fiat: str, side: str | None = None) -> Quote:
        rule = self.substitutions[fiat]
        base_quote = await self.fetch_direct(token, rule.base_fiat, side)
        return base_quote.scale(rule.multiplier)
