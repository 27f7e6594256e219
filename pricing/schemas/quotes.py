from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import ConfigDict, Field, field_validator

from pricing.constants import PRICE_KEY_PREFIX, SIDES
from pricing.schemas.base import Schema


@dataclass(frozen=True)
class QuoteKey:
    token: str
    fiat: str
    side: str | None = None

    @classmethod
    def create(cls, token: str, fiat: str, side: str | None = None) -> "QuoteKey":
        side = side.lower() if side else None
        if side is not None and side not in SIDES:
            raise ValueError(f"Invalid side: {side}")
        return cls(token.upper(), fiat.upper(), side)

    @property
    def cache_key(self) -> str:
        parts = [PRICE_KEY_PREFIX, self.token, self.fiat]
        if self.side:
            parts.append(self.side)
        return ":".join(parts)

    def __str__(self) -> str:
        pair = f"{self.token}/{self.fiat}"
        return f"{pair} ({self.side})" if self.side else pair


class Quote(Schema):
    model_config = ConfigDict(frozen=True)

    price: str = Field(description="Price in the quoted fiat, kept as a decimal string")
    timestamp: int = Field(description="Unix timestamp of the price, in seconds")

    @field_validator("price", mode="before")
    @classmethod
    def validate_price(cls, v: Any) -> str:
        if isinstance(v, int | float | Decimal):
            v = str(v)
        if not isinstance(v, str):
            raise ValueError("Price must be a decimal string")
        try:
            value = Decimal(v)
        except InvalidOperation as e:
            raise ValueError(f"Invalid price: {v}") from e
        if not value.is_finite():
            raise ValueError(f"Invalid price: {v}")
        return v

    @property
    def decimal_price(self) -> Decimal:
        return Decimal(self.price)

    def scale(self, multiplier: Decimal) -> "Quote":
        return Quote(price=str(self.decimal_price * multiplier), timestamp=self.timestamp)


class FiatSubstitutionRule(Schema):
    base_fiat: str
    multiplier: Decimal = Field(gt=0)

    @field_validator("base_fiat", mode="after")
    @classmethod
    def uppercase_fiat(cls, v: str) -> str:
        return v.upper()


class QuotaStatus(Schema):
    used: int
    remaining: int = Field(description="Calls left before the monthly limit")
    available: int = Field(description="Calls that can still be made, the safety margin excluded")
    limit: int
    percentage_used: int


class QuotaResetInput(Schema):
    value: int = Field(0, ge=0, description="Number of calls to record as already used in the current period")
