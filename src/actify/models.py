"""Data models for actify."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigurationError


class LogStatus(Enum):
    CREATED = "created"
    ABORTED = "aborted"
    FINISHED = "finished"


class LogError(BaseModel):
    message: str


class ActionLog(BaseModel):
    """Audit record of a single action commit.

    One log is produced per commit call. It is created as ``created`` and
    ends as either ``aborted`` or ``finished``.
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    status: LogStatus = LogStatus.CREATED
    actor_id: str | None = None
    actionable_type: str | None = None
    actionable_id: str | None = None
    action_code: str = ""
    action_label: str | None = None
    action_data: str = "{}"
    context: str = "{}"
    object_before: Any = None
    object_after: Any = None
    error: LogError | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_finished(self) -> bool:
        return self.status == LogStatus.FINISHED

    @property
    def is_aborted(self) -> bool:
        return self.status == LogStatus.ABORTED

    @property
    def error_message(self) -> str | None:
        return self.error.message if self.error else None

    def abort(self, message: str) -> None:
        self.status = LogStatus.ABORTED
        self.error = LogError(message=message)

    def finish(self) -> None:
        self.status = LogStatus.FINISHED
        self.error = None


class Dependency(BaseModel):
    """A dependent action to run before or after another one.

    ``options`` is free-form; ``required`` makes an aborted dependency abort
    the parent as well.
    """

    action_code: str
    options: dict[str, Any] = Field(default_factory=dict)

    @property
    def required(self) -> bool:
        return bool(self.options.get("required", False))


class StageResult(BaseModel):
    """Outcome of the contained stage of a commit (dependencies + commit body)."""

    succeeded: bool
    error: str | None = None

    @classmethod
    def ok(cls) -> StageResult:
        return cls(succeeded=True)

    @classmethod
    def failed(cls, message: str) -> StageResult:
        return cls(succeeded=False, error=message)


def _to_dependency(item: Any) -> Dependency:
    if isinstance(item, Dependency):
        return item
    if isinstance(item, str):
        return Dependency(action_code=item)
    if isinstance(item, tuple) and 1 <= len(item) <= 2:
        code, options = item[0], (item[1] if len(item) == 2 else None)
        return Dependency(action_code=code, options=dict(options or {}))
    if isinstance(item, Mapping):
        return Dependency.model_validate(item)
    raise ValueError(f"cannot interpret {item!r} as a dependent action")


class ActionOptions(BaseModel):
    """The declarative options an action accepts.

    Dependency options take a code, a ``(code, options)`` tuple, or a list
    of either.
    """

    model_config = ConfigDict(extra="forbid")

    label: str | None = None
    order: int | None = None
    type: str | None = None
    use_policy: bool | None = None
    execute_before_action: list[Dependency] | None = None
    execute_after_action: list[Dependency] | None = None

    @field_validator("execute_before_action", "execute_after_action", mode="before")
    @classmethod
    def _normalize_dependencies(cls, value: Any) -> Any:
        if value is None:
            return value
        if not isinstance(value, list):
            value = [value]
        return [_to_dependency(item) for item in value]

    @classmethod
    def parse(cls, options: Mapping[str, Any] | None) -> ActionOptions:
        """Validate raw options, raising ConfigurationError on any problem."""
        if options is not None and not isinstance(options, Mapping):
            raise ConfigurationError(
                f"Action options must be a mapping, got {type(options).__name__}"
            )
        raw = {str(key): value for key, value in (options or {}).items()}
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc

    def given(self) -> dict[str, Any]:
        """Return only the options that were explicitly provided."""
        return {name: getattr(self, name) for name in self.model_fields_set}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
