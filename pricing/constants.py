from decimal import Decimal

VERSION = "1.0.0"  # Version, used for openapi schemas
REFERENCE_CURRENCIES_KEY = "reference-currencies"  # cached provider reference currency ids
REFERENCE_CACHE_TTL = 30 * 24 * 60 * 60  # 30 days
API_USAGE_KEY = "api-usage-monthly"  # calls made in the current period
API_PERIOD_KEY = "api-usage-month"  # period identifier the usage counter belongs to
PRICE_KEY_PREFIX = "price"
PERIOD_FORMAT = "%Y-%m"
SIDES = ("buy", "sell")

DEFAULT_REFRESH_TOKENS = ["USDC"]
DEFAULT_REFRESH_FIATS = ["USD", "COP", "EUR", "NGN", "VES"]
# provider ids of reference currencies known before the provider list is fetched
DEFAULT_CURRENCY_IDS = {
    "USD": "yhjMzLPhuIDl",
    "COP": "Y7N-jnLhqYiW",
    "NGN": "znnRJjGM4nVb",
    "EUR": "5k-_VTxqtCEI",
}
DEFAULT_COIN_IDS = {
    "USDC": "aKzUVe4Hh_CON",
    "USD": "yhjMzLPhuIDl",
}
# VES is not listed by the provider, it is derived from the USD price
DEFAULT_FIAT_SUBSTITUTIONS = {
    "VES": {"base_fiat": "USD", "multiplier": Decimal("106")},
}
