from dishka import Provider, Scope, from_context, provide

from pricing.ext.providers import BaseQuoteProvider, CoinrankingProvider
from pricing.redis import Redis, create_redis
from pricing.settings import Settings


class AppProvider(Provider):
    settings = from_context(provides=Settings, scope=Scope.RUNTIME)

    @provide(scope=Scope.APP)
    def get_quote_provider(self, settings: Settings) -> BaseQuoteProvider:
        return CoinrankingProvider(settings)


provider = AppProvider()
provider.provide(create_redis, provides=Redis, scope=Scope.RUNTIME)
