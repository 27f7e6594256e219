from abc import ABCMeta, abstractmethod

from pricing.schemas.quotes import Quote


class BaseQuoteProvider(metaclass=ABCMeta):
    """Upstream source of single-asset prices.

    Every `get_price` call is one billable upstream call. Implementations raise
    `UpstreamError` for transport failures, non-200 responses and malformed payloads.
    """

    name: str

    @abstractmethod
    async def get_price(self, coin_id: str, reference_id: str, side: str | None = None) -> Quote:
        pass

    @abstractmethod
    async def get_reference_currencies(self) -> dict[str, str]:
        """Return a mapping of currency symbol to provider identifier"""
