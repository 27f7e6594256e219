from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from dishka import Provider, Scope, provide

from pricing.exceptions import UpstreamError
from pricing.ext.providers import BaseQuoteProvider
from pricing.redis import Redis
from pricing.schemas.quotes import Quote
from tests.fixtures import static_data

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


class StubProvider(BaseQuoteProvider):
    name = "stub"

    def __init__(
        self,
        prices: dict[str, str] | None = None,
        failing: set[str] | None = None,
        delay: float = 0,
    ) -> None:
        self.prices = dict(static_data.PRICES if prices is None else prices)
        self.failing = failing or set()
        self.delay = delay
        self.timestamp = static_data.NOW_TIMESTAMP
        self.calls: list[tuple[str, str, str | None]] = []
        self.currency_calls = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.currencies = dict(static_data.REFERENCE_CURRENCIES)

    async def get_price(self, coin_id: str, reference_id: str, side: str | None = None) -> Quote:
        self.calls.append((coin_id, reference_id, side))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
        if reference_id in self.failing:
            raise UpstreamError(f"stub failure for {reference_id}")
        return Quote(price=self.prices.get(reference_id, "1.00"), timestamp=self.timestamp)

    async def get_reference_currencies(self) -> dict[str, str]:
        self.currency_calls += 1
        if "reference-currencies" in self.failing:
            raise UpstreamError("stub failure for reference currencies")
        return self.currencies


@dataclass
class MockResponse:
    status: int = 200


def freeze_time(mocker: MockerFixture, dt: datetime) -> Any:
    return mocker.patch("pricing.utils.time.now", return_value=dt)


class OverridesProvider(Provider):
    def __init__(self, redis: Redis, quote_provider: BaseQuoteProvider) -> None:
        super().__init__()
        self.redis = redis
        self.quote_provider = quote_provider

    @provide(scope=Scope.RUNTIME)
    def get_redis(self) -> Redis:
        return self.redis

    @provide(scope=Scope.APP)
    def get_quote_provider(self) -> BaseQuoteProvider:
        return self.quote_provider
