from typing import Any

from pydantic import BaseModel, model_validator


class Schema(BaseModel):
    """Base of cached and returned payloads, strips surrounding whitespace from string inputs"""

    @model_validator(mode="wrap")
    @classmethod
    def strip_strings(cls, values: Any, handler: Any) -> Any:
        if isinstance(values, dict):
            values = {k: cls._prepare_value(v) for k, v in values.items()}
        return handler(values)

    @staticmethod
    def _prepare_value(v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v
