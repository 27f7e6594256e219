import json
import sys
from enum import StrEnum
from typing import Any, Self

from pydantic import Field, field_validator, model_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    DotEnvSettingsSource,
    EnvSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from pricing.constants import (
    DEFAULT_COIN_IDS,
    DEFAULT_CURRENCY_IDS,
    DEFAULT_FIAT_SUBSTITUTIONS,
    DEFAULT_REFRESH_FIATS,
    DEFAULT_REFRESH_TOKENS,
    REFERENCE_CACHE_TTL,
)
from pricing.schemas.quotes import FiatSubstitutionRule

COMMA_SEPARATED_FIELDS = ("REFRESH_TOKENS", "REFRESH_FIATS")


class CustomDecodingMixin:
    def decode_complex_value(self, field_name: str, field: FieldInfo, value: Any) -> Any:
        if field_name in COMMA_SEPARATED_FIELDS and not value.lstrip().startswith("["):
            return value
        return json.loads(value)


class MyEnvSettingsSource(CustomDecodingMixin, EnvSettingsSource):
    pass


class MyDotEnvSettingsSource(CustomDecodingMixin, DotEnvSettingsSource):
    pass


class Environment(StrEnum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class Settings(BaseSettings):
    ENV: Environment = Field(
        Environment.TESTING if "pytest" in sys.modules else Environment.DEVELOPMENT, validation_alias="ENV"
    )
    DEBUG: bool = Field(False, validation_alias="DEBUG")
    LOG_LEVEL: str = Field("INFO", validation_alias="LOG_LEVEL")
    LOG_FILE: str | None = Field(None, validation_alias="LOG_FILE")
    SENTRY_DSN: str | None = Field(None, validation_alias="SENTRY_DSN")
    ROOT_PATH: str = Field("", validation_alias="PRICING_ROOTPATH")
    API_TITLE: str = Field("Pricing server", validation_alias="API_TITLE")
    ADMIN_TOKEN: str | None = Field(None, validation_alias="ADMIN_TOKEN")

    REDIS_HOST: str = Field("redis://localhost", validation_alias="REDIS_URL")

    COINRANKING_API_URL: str = Field("https://api.coinranking.com/v2", validation_alias="COINRANKING_API_URL")
    COINRANKING_API_KEY: str = Field("", validation_alias="COINRANKING_API_KEY")
    PROVIDER_TIMEOUT: float = Field(30, validation_alias="PROVIDER_TIMEOUT")

    MONTHLY_API_LIMIT: int = Field(3000, validation_alias="MONTHLY_API_LIMIT", gt=0)
    # calls held back from the limit, i.e. 10 refuses calls once only 10 are left
    QUOTA_SAFETY_MARGIN: int = Field(0, validation_alias="QUOTA_SAFETY_MARGIN", ge=0)
    QUOTE_CACHE_TTL: int = Field(60 * 60, validation_alias="QUOTE_CACHE_TTL", gt=0)
    REFRESH_SKIP_AGE: int = Field(30 * 60, validation_alias="REFRESH_SKIP_AGE", ge=0)
    REFRESH_INTERVAL: int = Field(60 * 60, validation_alias="REFRESH_INTERVAL", gt=0)
    REFERENCE_CACHE_TTL: int = Field(REFERENCE_CACHE_TTL, validation_alias="REFERENCE_CACHE_TTL", gt=0)

    REFRESH_TOKENS: list[str] = Field(DEFAULT_REFRESH_TOKENS, validation_alias="REFRESH_TOKENS")
    REFRESH_FIATS: list[str] = Field(DEFAULT_REFRESH_FIATS, validation_alias="REFRESH_FIATS")
    DEFAULT_FIAT: str = Field("USD", validation_alias="DEFAULT_FIAT")
    CURRENCY_IDS: dict[str, str] = Field(DEFAULT_CURRENCY_IDS, validation_alias="CURRENCY_IDS")
    COIN_IDS: dict[str, str] = Field(DEFAULT_COIN_IDS, validation_alias="COIN_IDS")
    FIAT_SUBSTITUTIONS: dict[str, FiatSubstitutionRule] = Field(
        DEFAULT_FIAT_SUBSTITUTIONS, validation_alias="FIAT_SUBSTITUTIONS", validate_default=True
    )

    model_config = SettingsConfigDict(env_file="conf/.env", extra="ignore", populate_by_name=True)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            MyEnvSettingsSource(settings_cls, env_ignore_empty=True),
            MyDotEnvSettingsSource(settings_cls),
        )

    @field_validator("REFRESH_TOKENS", "REFRESH_FIATS", mode="before")
    @classmethod
    def split_symbols(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = [part.strip() for part in v.split(",")]
        return [x.upper() for x in v if x]

    @field_validator("CURRENCY_IDS", "COIN_IDS", "FIAT_SUBSTITUTIONS", mode="after")
    @classmethod
    def uppercase_keys(cls, v: dict[str, Any]) -> dict[str, Any]:
        return {k.upper(): val for k, val in v.items()}

    @field_validator("DEFAULT_FIAT", mode="after")
    @classmethod
    def uppercase_fiat(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def check_limits(self) -> Self:
        if self.REFRESH_SKIP_AGE >= self.QUOTE_CACHE_TTL:
            raise ValueError("REFRESH_SKIP_AGE must be shorter than QUOTE_CACHE_TTL")
        if self.QUOTA_SAFETY_MARGIN >= self.MONTHLY_API_LIMIT:
            raise ValueError("QUOTA_SAFETY_MARGIN must be lower than MONTHLY_API_LIMIT")
        if self.DEFAULT_FIAT not in self.CURRENCY_IDS:
            raise ValueError(f"DEFAULT_FIAT {self.DEFAULT_FIAT} has no entry in CURRENCY_IDS")
        for fiat, rule in self.FIAT_SUBSTITUTIONS.items():
            if rule.base_fiat in self.FIAT_SUBSTITUTIONS:
                raise ValueError(f"Substitution for {fiat} can not be based on another substituted fiat")
        return self

    @property
    def redis_url(self) -> str:
        return self.REDIS_HOST

    @property
    def coinranking_headers(self) -> dict[str, str]:
        return {"x-access-token": self.COINRANKING_API_KEY}

    def is_testing(self) -> bool:
        return self.ENV == Environment.TESTING

    def is_development(self) -> bool:
        return self.ENV == Environment.DEVELOPMENT

    def is_production(self) -> bool:
        return self.ENV == Environment.PRODUCTION
