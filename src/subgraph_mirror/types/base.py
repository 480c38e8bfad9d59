"""Base models for records exchanged with the subgraph and the HTTP API."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    A base model that converts field names to camel case when serializing.

    For example, the field name `from_checkpoint` in a Python model will be
    represented as `fromCheckpoint` when it is serialized to JSON.

    The subgraph and the HTTP API both speak camelCase, so every model that
    crosses either boundary derives from this class.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_default=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """JSON-compatible dict with camelCase keys, as sent over HTTP or to disk."""
        return self.model_dump(mode="json", by_alias=True)


class StrictBaseModel(CamelModel):
    """A strict, immutable model for recorded values that never change."""

    model_config = CamelModel.model_config | {
        "extra": "forbid",
        "frozen": True,
        "strict": True,
    }
