"""Base model for wire-level PWA payloads.

Payloads crossing the page/worker boundary (push data, notification
options, control messages) use the browser's camelCase keys.
:class:`PwaBaseModel` maps them onto snake_case fields with
``alias_generator=to_camel`` and drops empty values so that field
defaults apply, the same way a missing key would.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class PwaBaseModel(BaseModel):
    """Base for frozen camelCase payload models.

    Handles:
    * camelCase → snake_case via ``alias_generator=to_camel``
    * ``None`` and blank strings → dropped so the field default is used
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_empty_values(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            cleaned[key] = value
        return cleaned

    def to_wire(self) -> dict[str, Any]:
        """Dump using camelCase keys, omitting unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)
