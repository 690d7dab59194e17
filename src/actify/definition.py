"""Builder that assembles an :class:`Action` from declarative options."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping

from .action import Action, Finalizer, Predicate, Procedure
from .exceptions import ConfigurationError
from .models import ActionOptions, Dependency

if TYPE_CHECKING:
    from .registry import ActionRegistry


class ActionDefinition:
    """Declares or re-opens an action on a registry.

    If the registry already holds an action with the same code, the builder
    works on that action, so only the options and handlers given here are
    replaced. The action is registered as soon as the builder is created.

        approve = registry.define("approve", {"label": "Approve", "order": 1})

        @approve.authorized
        def can_approve(invoice, ctx):
            return ctx.actor.is_manager
    """

    def __init__(
        self,
        registry: ActionRegistry,
        code: str,
        options: Mapping[str, Any] | None = None,
    ) -> None:
        if not code:
            raise ConfigurationError("Action code must be a non-empty string")
        self.registry = registry
        existing = registry.lookup(code)
        self.action = existing if existing is not None else Action(code, registry)
        self.with_options(options or {})
        registry.register(code, self.action)

    @property
    def code(self) -> str:
        return self.action.code

    def with_options(self, options: Mapping[str, Any]) -> ActionDefinition:
        parsed = ActionOptions.parse(options)
        for name, value in parsed.given().items():
            if name in ("execute_before_action", "execute_after_action"):
                for dependency in value or []:
                    getattr(self, name)(dependency.action_code, dependency.options)
            else:
                getattr(self, name)(value)
        return self

    # ── Options ──

    def label(self, label: str | None) -> None:
        self.action.label = label

    def order(self, order: int | None) -> None:
        self.action.order = order or 0

    def type(self, type: str | None) -> None:
        self.action.type = type

    def use_policy(self, use_policy: bool | None) -> None:
        self.action.use_policy = bool(use_policy)

    def execute_before_action(
        self, action_code: str, options: Mapping[str, Any] | None = None
    ) -> None:
        _upsert(self.action.before_actions, action_code, options)

    def execute_after_action(
        self, action_code: str, options: Mapping[str, Any] | None = None
    ) -> None:
        _upsert(self.action.after_actions, action_code, options)

    # ── Handlers ──

    def show(self, handler: Predicate) -> Predicate:
        self.action.on_show = handler
        return handler

    def authorized(self, handler: Predicate) -> Predicate:
        self.action.on_authorized = handler
        return handler

    def commitable(self, handler: Predicate) -> Predicate:
        self.action.on_commitable = handler
        return handler

    def commit(self, handler: Procedure) -> Procedure:
        self.action.on_commit = handler
        return handler

    def finalize(self, handler: Finalizer) -> Finalizer:
        self.action.on_finalize = handler
        return handler


def _upsert(
    dependencies: list[Dependency],
    action_code: str,
    options: Mapping[str, Any] | None,
) -> None:
    dependency = Dependency(action_code=action_code, options=dict(options or {}))
    for index, existing in enumerate(dependencies):
        if existing.action_code == action_code:
            dependencies[index] = dependency
            return
    dependencies.append(dependency)
