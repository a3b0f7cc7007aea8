"""Session model carried between turns."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Serializable bag of conversation state.

    Applications either subclass it with typed fields or rely on extra
    attributes, which are kept and serialized as-is.
    """

    model_config = ConfigDict(extra="allow")

    state: str | None = None

    @classmethod
    def deserialize(cls, attributes: Mapping[str, Any] | None) -> Model:
        """Build a model from the session attributes of an incoming event."""

        return cls.model_validate(dict(attributes or {}))

    def serialize(self) -> dict[str, Any]:
        """Dump the model into JSON-compatible session attributes."""

        return self.model_dump(mode="json", exclude_none=True)
