from collections.abc import AsyncIterator

import pytest
from fakeredis import FakeAsyncRedis
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from main import get_app
from pricing.ioc import build_container, setup_dishka
from pricing.redis import Redis
from pricing.settings import Settings
from tests.fixtures import static_data
from tests.helper import OverridesProvider, StubProvider, freeze_time

# To separate setup fixtures from code testing helper fixtures
pytest_plugins = ["tests.fixtures.pytest.data"]


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        ENV="testing",
        MONTHLY_API_LIMIT=static_data.TEST_LIMIT,
        QUOTA_SAFETY_MARGIN=0,
        QUOTE_CACHE_TTL=3600,
        REFRESH_SKIP_AGE=1800,
        REFRESH_TOKENS=["USDC"],
        REFRESH_FIATS=["USD", "COP", "EUR", "NGN", "VES"],
        ADMIN_TOKEN=static_data.ADMIN_TOKEN,
    )


@pytest.fixture
async def redis(anyio_backend) -> AsyncIterator[Redis]:
    redis = FakeAsyncRedis(decode_responses=True)
    yield redis
    await redis.flushall()
    await redis.aclose()


@pytest.fixture
def provider() -> StubProvider:
    return StubProvider()


@pytest.fixture
def frozen_time(mocker):
    return freeze_time(mocker, static_data.NOW)


@pytest.fixture
async def app(settings: Settings, redis: Redis, provider: StubProvider, anyio_backend) -> AsyncIterator[FastAPI]:
    container = build_container(settings, extra_providers=[OverridesProvider(redis, provider)], with_scheduler=False)
    app = get_app(settings)
    setup_dishka(container=container, app=app)
    yield app
    await container.close()


@pytest.fixture
async def client(app: FastAPI, anyio_backend) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client
