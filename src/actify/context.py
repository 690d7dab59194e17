"""Per-invocation context carried into every action predicate and commit."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import InvalidDataError


class Context(BaseModel):
    """Invocation metadata: the acting principal plus an opaque data payload.

    Extra fields are allowed so request metadata can be layered in by the
    caller before a commit.
    """

    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    actor: Any = None
    data: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def build(
        cls,
        actor: Any = None,
        data: Mapping[str, Any] | None = None,
        **extra: Any,
    ) -> Context:
        if data is not None and not isinstance(data, Mapping):
            raise InvalidDataError(
                f"Context data must be a mapping, got {type(data).__name__}"
            )
        return cls(actor=actor, data=dict(data or {}), **extra)

    def merge(self, **fields: Any) -> Context:
        """Return a copy of this context with ``fields`` layered on top."""
        if "data" in fields and not isinstance(fields["data"], Mapping):
            raise InvalidDataError("Context data must be a mapping")
        return self.model_copy(update=fields)

    @property
    def extra(self) -> dict[str, Any]:
        return dict(self.model_extra or {})

    @property
    def actor_id(self) -> Any:
        if self.actor is None:
            return None
        return getattr(self.actor, "id", self.actor)

    def serialize_data(self) -> str:
        return json.dumps(self.data, default=str, sort_keys=True)

    def serialize(self) -> str:
        payload: dict[str, Any] = {"actor": self.actor_id, "data": self.data}
        payload.update(self.extra)
        return json.dumps(payload, default=str, sort_keys=True)
