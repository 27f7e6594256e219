import json
from typing import Any

from aiohttp import ClientError
from pydantic import ValidationError

from pricing import utils
from pricing.exceptions import UpstreamError
from pricing.ext.providers.base import BaseQuoteProvider
from pricing.logging import get_logger
from pricing.schemas.quotes import Quote
from pricing.settings import Settings

logger = get_logger(__name__)


class CoinrankingProvider(BaseQuoteProvider):
    name = "coinranking"

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    async def fetch(self, path: str, **kwargs: Any) -> Any:
        url = f"{self.settings.COINRANKING_API_URL}{path}"
        try:
            resp, text = await utils.common.send_request(
                "GET",
                url,
                return_json=False,
                headers=self.settings.coinranking_headers,
                timeout=self.settings.PROVIDER_TIMEOUT,
                **kwargs,
            )
        except (ClientError, TimeoutError) as e:
            raise UpstreamError(f"{self.name} request to {path} failed: {e}") from e
        if resp.status != 200:
            raise UpstreamError(f"{self.name} returned HTTP {resp.status} for {path}")
        try:
            data = json.loads(text)
        except ValueError as e:
            raise UpstreamError(f"{self.name} returned invalid JSON for {path}") from e
        if not isinstance(data, dict) or data.get("status") != "success" or not isinstance(data.get("data"), dict):
            raise UpstreamError(f"{self.name} returned an unexpected payload for {path}")
        return data["data"]

    async def get_price(self, coin_id: str, reference_id: str, side: str | None = None) -> Quote:
        # bid/ask prices are not distinguished by coinranking, side only affects caching
        data = await self.fetch(f"/coin/{coin_id}/price", params={"referenceCurrencyUuid": reference_id})
        try:
            return Quote(price=data["price"], timestamp=data["timestamp"])
        except (KeyError, ValidationError) as e:
            raise UpstreamError(f"{self.name} returned a malformed price: {data}") from e

    async def get_reference_currencies(self) -> dict[str, str]:
        data = await self.fetch("/reference-currencies", params={"limit": 100})
        currencies = data.get("currencies")
        if not isinstance(currencies, list):
            raise UpstreamError(f"{self.name} returned a malformed currency list")
        return {
            currency["symbol"].upper(): currency["uuid"]
            for currency in currencies
            if isinstance(currency, dict) and currency.get("symbol") and currency.get("uuid")
        }
