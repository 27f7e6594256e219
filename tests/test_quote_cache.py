import pytest

from pricing.schemas.quotes import Quote, QuoteKey
from pricing.services.quote_cache import QuoteCache
from tests.fixtures import static_data


def test_quote_key() -> None:
    key = QuoteKey.create("usdc", "eur")
    assert key == QuoteKey("USDC", "EUR")
    assert key.cache_key == "price:USDC:EUR"
    assert str(key) == "USDC/EUR"
    sided = QuoteKey.create("USDC", "EUR", "SELL")
    assert sided.cache_key == "price:USDC:EUR:sell"
    assert sided != key
    with pytest.raises(ValueError):
        QuoteKey.create("USDC", "EUR", "hold")


@pytest.mark.anyio
async def test_cache_roundtrip(quote_cache: QuoteCache, redis) -> None:
    key = QuoteKey.create("USDC", "NGN")
    quote = Quote(price="1540.50", timestamp=static_data.NOW_TIMESTAMP)
    assert await quote_cache.get(key) is None
    await quote_cache.put(key, quote)
    cached = await quote_cache.get(key)
    assert cached == quote
    assert cached.price == "1540.50"  # trailing zeros are preserved
    assert 0 < await redis.ttl(key.cache_key) <= 3600


@pytest.mark.anyio
async def test_cache_custom_ttl(quote_cache: QuoteCache, redis) -> None:
    key = QuoteKey.create("USDC", "USD", "buy")
    await quote_cache.put(key, Quote(price="1", timestamp=static_data.NOW_TIMESTAMP), ttl=60)
    assert 0 < await redis.ttl(key.cache_key) <= 60
    assert await quote_cache.get(QuoteKey.create("USDC", "USD")) is None


@pytest.mark.anyio
async def test_malformed_entry_is_a_miss(quote_cache: QuoteCache, redis) -> None:
    key = QuoteKey.create("USDC", "EUR")
    await redis.set(key.cache_key, '{"price": "abc", "timestamp": 1}')
    assert await quote_cache.get(key) is None
    await redis.set(key.cache_key, "not json")
    assert await quote_cache.get(key) is None


def test_freshness(quote_cache: QuoteCache, frozen_time) -> None:
    fresh = Quote(price="1.00", timestamp=static_data.NOW_TIMESTAMP - 29 * 60)
    stale = Quote(price="1.00", timestamp=static_data.NOW_TIMESTAMP - 30 * 60)
    assert quote_cache.age(fresh) == 29 * 60
    assert quote_cache.is_fresh(fresh)
    assert not quote_cache.is_fresh(stale)
    assert quote_cache.is_fresh(stale, max_age=3600)


@pytest.mark.parametrize("price", ["abc", "NaN", "Infinity", None, ""])
def test_invalid_price(price) -> None:
    with pytest.raises(ValueError):
        Quote(price=price, timestamp=static_data.NOW_TIMESTAMP)


def test_quote_scale() -> None:
    quote = Quote(price="1.00", timestamp=static_data.NOW_TIMESTAMP)
    scaled = quote.scale(static_data.VES_MULTIPLIER)
    assert scaled.price == "106.00"
    assert scaled.timestamp == quote.timestamp
    assert Quote(price=1.5, timestamp=1).price == "1.5"
