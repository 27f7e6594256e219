from collections.abc import AsyncIterator

from dishka import Provider, Scope, decorate, provide_all

from pricing.services.currency_reference import CurrencyReference
from pricing.services.pricing import PricingService
from pricing.services.quota import QuotaTracker
from pricing.services.quote_cache import QuoteCache
from pricing.services.quote_fetcher import QuoteFetcher
from pricing.services.refresh_scheduler import RefreshScheduler


class ServicesProvider(Provider):
    app_provides = provide_all(
        QuotaTracker,
        QuoteCache,
        CurrencyReference,
        QuoteFetcher,
        RefreshScheduler,
        PricingService,
        scope=Scope.APP,
    )


class SchedulerProvider(Provider):
    @decorate
    async def get_currency_reference(
        self,
        service: CurrencyReference,
    ) -> AsyncIterator[CurrencyReference]:
        await service.load()
        yield service

    @decorate
    async def get_refresh_scheduler(
        self,
        service: RefreshScheduler,
    ) -> AsyncIterator[RefreshScheduler]:
        await service.start()
        yield service
        await service.stop()

    TO_PRELOAD = [CurrencyReference, RefreshScheduler]
