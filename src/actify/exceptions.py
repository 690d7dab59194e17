"""Custom exceptions for actify."""

from __future__ import annotations

from typing import Sequence


class ActifyError(Exception):
    """Base exception for actify errors."""


class ActorMissingError(ActifyError):
    """Raised when an action is committed without an actor on the context."""

    def __init__(self, code: str | None = None) -> None:
        super().__init__("Actor is required to commit action")
        self.code = code


class InvalidDataError(ActifyError):
    """Raised when a context carries a malformed data payload."""


class ConfigurationError(ActifyError):
    """Raised when an action is declared with unrecognized or malformed options."""


class ActionNotFoundError(ActifyError):
    """Raised when an action code is not registered."""

    def __init__(self, code: str) -> None:
        super().__init__(f"Action not found: {code}")
        self.code = code


class DependencyFailedError(ActifyError):
    """Raised when a required dependent action ends aborted."""

    def __init__(self, code: str, reason: str | None) -> None:
        super().__init__(f"Dependent action {code} aborted: {reason}")
        self.code = code
        self.reason = reason


class DependencyCycleError(ActifyError):
    """Raised when dependent actions loop back onto a running action."""

    def __init__(self, chain: Sequence[str]) -> None:
        super().__init__(f"Dependency cycle: {' -> '.join(chain)}")
        self.chain = tuple(chain)
