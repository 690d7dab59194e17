"""Change tracking for action targets."""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable


@runtime_checkable
class Trackable(Protocol):
    """What an action target must expose.

    ``diff()`` returns ``{field: (old, new)}`` for everything changed since
    the previous call, and starts a fresh observation window.
    """

    id: Any

    def diff(self) -> Mapping[str, tuple[Any, Any]]: ...


class ChangeTracked:
    """Plain-object implementation of :class:`Trackable`.

    Attribute assignments made after ``__init__`` returns are recorded.
    Assigning a field back to the value it had at the start of the window
    drops it from the diff.
    """

    _tracking_ready = False

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        init = cls.__dict__.get("__init__")
        if init is None:
            if cls.__init__ is not object.__init__:
                return
            init = _no_init

        def __init__(self: ChangeTracked, *args: Any, **kw: Any) -> None:
            object.__setattr__(self, "_tracking_ready", False)
            init(self, *args, **kw)
            # only the outermost __init__ opens the window
            if type(self).__init__ is __init__:
                self._start_tracking()

        __init__.__doc__ = init.__doc__
        cls.__init__ = __init__  # type: ignore[method-assign]

    def _start_tracking(self) -> None:
        object.__setattr__(self, "_changes", {})
        object.__setattr__(self, "_tracking_ready", True)

    def __setattr__(self, name: str, value: Any) -> None:
        if self._tracking_ready and not name.startswith("_"):
            changes: dict[str, tuple[Any, Any]] = self._changes
            if name in changes:
                old = changes[name][0]
            else:
                old = getattr(self, name, None)
            if old == value:
                changes.pop(name, None)
            else:
                changes[name] = (old, value)
        object.__setattr__(self, name, value)

    @property
    def changed(self) -> bool:
        return bool(self._tracking_ready and self._changes)

    def diff(self) -> dict[str, tuple[Any, Any]]:
        if not self._tracking_ready:
            return {}
        changes = dict(self._changes)
        self._changes.clear()
        return changes


def _no_init(self: Any) -> None:
    pass
