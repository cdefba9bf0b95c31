from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class Payload(BaseModel):
    """Base for decoded upstream documents.

    Payloads are immutable once decoded. Unknown keys are ignored and JSON
    ``null`` falls back to the field default, so a partially populated
    upstream document still decodes as long as present values have the
    expected types.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data
