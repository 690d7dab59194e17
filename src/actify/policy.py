"""Policy collaborator consulted by actions declared with ``use_policy``."""

from __future__ import annotations

from typing import Any, Callable

from .context import Context


class Policy:
    """Answers whether an actor may run an action on an object.

    The default ``allows`` looks up a method named after the action code and
    calls it with ``(context, obj)``. An action with no matching method is
    denied.

        class InvoicePolicy(Policy):
            def approve(self, context, invoice):
                return context.actor.is_manager
    """

    def allows(self, context: Context, obj: Any, action_code: str) -> bool:
        rule: Callable[[Context, Any], bool] | None = getattr(self, action_code, None)
        if rule is None or not callable(rule):
            return False
        return bool(rule(context, obj))
