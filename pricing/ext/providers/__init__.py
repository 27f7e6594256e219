from pricing.ext.providers.base import BaseQuoteProvider
from pricing.ext.providers.coinranking import CoinrankingProvider

__all__ = ["BaseQuoteProvider", "CoinrankingProvider"]
