import pytest

from pricing.schemas.quotes import Quote, QuoteKey
from pricing.services.quote_cache import QuoteCache
from tests.fixtures import static_data
from tests.helper import StubProvider

pytestmark = pytest.mark.anyio


def auth_headers(token: str = static_data.ADMIN_TOKEN) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.parametrize("params", [{}, {"token": "USDC"}, {"fiat": "USD"}, {"token": "", "fiat": "USD"}])
async def test_price_missing_params(client, params) -> None:
    resp = await client.get("/price", params=params)
    assert resp.status_code == 400
    assert resp.json() == {"status": "error", "message": "Token and fiat are required"}


async def test_price(client, provider: StubProvider, frozen_time) -> None:
    resp = await client.get("/price", params={"token": "usdc", "fiat": "ves"})
    assert resp.status_code == 200
    assert resp.json() == {"status": "success", "data": {"price": "106.00", "timestamp": static_data.NOW_TIMESTAMP}}
    resp = await client.get("/price", params={"token": "USDC", "fiat": "VES"})
    assert resp.status_code == 200
    assert len(provider.calls) == 1


async def test_price_cached(client, redis, settings, provider: StubProvider) -> None:
    await QuoteCache(settings, redis).put(QuoteKey.create("USDC", "EUR", "sell"), Quote(price="0.93", timestamp=1))
    resp = await client.get("/price", params={"token": "USDC", "fiat": "EUR", "side": "sell"})
    assert resp.json()["data"] == {"price": "0.93", "timestamp": 1}
    assert provider.calls == []


async def test_price_invalid_side(client) -> None:
    resp = await client.get("/price", params={"token": "USDC", "fiat": "EUR", "side": "hold"})
    assert resp.status_code == 422


async def test_price_unsupported_token(client) -> None:
    resp = await client.get("/price", params={"token": "DOGE", "fiat": "USD"})
    assert resp.status_code == 422
    assert resp.json() == {"status": "error", "message": "Unsupported token: DOGE"}


async def test_price_quota_exhausted(client, frozen_time) -> None:
    resp = await client.post("/api-usage/reset", json={"value": static_data.TEST_LIMIT}, headers=auth_headers())
    assert resp.status_code == 200
    resp = await client.get("/price", params={"token": "USDC", "fiat": "EUR"})
    assert resp.status_code == 503
    assert resp.json()["status"] == "error"


async def test_price_upstream_error(client, provider: StubProvider, frozen_time) -> None:
    provider.failing.add(static_data.EUR_ID)
    resp = await client.get("/price", params={"token": "USDC", "fiat": "EUR"})
    assert resp.status_code == 503
    assert resp.json() == {"status": "error", "message": "Failed to fetch price"}
    resp = await client.get("/api-usage")
    assert resp.json()["data"]["used"] == 0


async def test_api_usage(client, frozen_time) -> None:
    await client.get("/price", params={"token": "USDC", "fiat": "NGN"})
    resp = await client.get("/api-usage")
    assert resp.status_code == 200
    assert resp.json() == {
        "status": "success",
        "data": {
            "used": 1,
            "remaining": static_data.TEST_LIMIT - 1,
            "available": static_data.TEST_LIMIT - 1,
            "limit": static_data.TEST_LIMIT,
            "percentage_used": 1,
        },
    }


async def test_reset_usage(client, frozen_time) -> None:
    resp = await client.post("/api-usage/reset", json={"value": 5}, headers=auth_headers())
    assert resp.status_code == 200
    assert resp.json()["data"]["used"] == 5
    resp = await client.post("/api-usage/reset", json={}, headers=auth_headers())
    assert resp.json()["data"]["used"] == 0


async def test_reset_usage_auth(client, frozen_time) -> None:
    assert (await client.post("/api-usage/reset", json={"value": 5})).status_code == 401
    resp = await client.post("/api-usage/reset", json={"value": 5}, headers=auth_headers("wrong"))
    assert resp.status_code == 401
    resp = await client.post("/api-usage/reset", json={"value": -1}, headers=auth_headers())
    assert resp.status_code == 422
    assert (await client.get("/api-usage")).json()["data"]["used"] == 0


async def test_reset_disabled_without_token(client, settings, frozen_time) -> None:
    settings.ADMIN_TOKEN = None
    resp = await client.post("/api-usage/reset", json={"value": 5}, headers=auth_headers())
    assert resp.status_code == 404


async def test_health(client, redis, mocker) -> None:
    assert (await client.get("/health/live")).json() == {"status": "ok"}
    assert (await client.get("/health/ready")).json() == {"status": "ok"}
    mocker.patch.object(redis, "ping", side_effect=ConnectionError("down"))
    resp = await client.get("/health/ready")
    assert resp.status_code == 503
