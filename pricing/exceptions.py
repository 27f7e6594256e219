class PricingError(Exception):
    """Generic error class for all errors raised"""


class QuotaExceededError(PricingError):
    """Not enough upstream calls left in the current period"""


class UpstreamError(PricingError):
    """Quote provider is unreachable or returned an unusable response"""


class StoreError(PricingError):
    """Counter/cache store is unreachable"""


class UnsupportedTokenError(PricingError):
    """Token has no known provider identifier"""
