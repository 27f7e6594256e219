import pytest

from pricing.redis import Redis
from pricing.services.currency_reference import CurrencyReference
from pricing.services.pricing import PricingService
from pricing.services.quota import QuotaTracker
from pricing.services.quote_cache import QuoteCache
from pricing.services.quote_fetcher import QuoteFetcher
from pricing.services.refresh_scheduler import RefreshScheduler
from pricing.settings import Settings
from tests.helper import StubProvider


@pytest.fixture
def quota_tracker(settings: Settings, redis: Redis) -> QuotaTracker:
    return QuotaTracker(settings, redis)


@pytest.fixture
def quote_cache(settings: Settings, redis: Redis) -> QuoteCache:
    return QuoteCache(settings, redis)


@pytest.fixture
def currency_reference(settings: Settings, redis: Redis, provider: StubProvider) -> CurrencyReference:
    return CurrencyReference(settings, redis, provider)


@pytest.fixture
def quote_fetcher(
    settings: Settings, provider: StubProvider, quota_tracker: QuotaTracker, currency_reference: CurrencyReference
) -> QuoteFetcher:
    return QuoteFetcher(settings, provider, quota_tracker, currency_reference)


@pytest.fixture
def refresh_scheduler(
    settings: Settings, quota_tracker: QuotaTracker, quote_cache: QuoteCache, quote_fetcher: QuoteFetcher
) -> RefreshScheduler:
    return RefreshScheduler(settings, quota_tracker, quote_cache, quote_fetcher)


@pytest.fixture
def pricing_service(quota_tracker: QuotaTracker, quote_cache: QuoteCache, quote_fetcher: QuoteFetcher) -> PricingService:
    return PricingService(quota_tracker, quote_cache, quote_fetcher)
