"""The executable action and its commit state machine."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Mapping

from .config import default_log_store
from .context import Context
from .exceptions import (
    ActionNotFoundError,
    ActorMissingError,
    DependencyCycleError,
    DependencyFailedError,
)
from .models import ActionLog, Dependency, StageResult
from .notifications import ACTION_ABORTED, ACTION_FINISHED, ACTION_STARTED

if TYPE_CHECKING:
    from .registry import ActionRegistry
    from .store import LogStore

logger = logging.getLogger(__name__)

Predicate = Callable[[Any, Context], bool]
Procedure = Callable[[Any, Context], Any]
Finalizer = Callable[[ActionLog, Any, Context], Any]

UNAUTHORIZED = "Unauthorized"
WRONG_CONTEXT = "Wrong context"


class Action:
    """A named, gated, auditable unit of business logic.

    Actions are normally assembled by :class:`~actify.definition.ActionDefinition`
    and looked up from an :class:`~actify.registry.ActionRegistry`. Calling
    :meth:`commit` never raises for business failures: the outcome is on the
    returned log. Committing twice runs the commit body twice and writes two
    logs; nothing here makes an action idempotent.
    """

    def __init__(self, code: str, registry: ActionRegistry | None = None) -> None:
        self.code = code
        self.registry = registry
        self.label: str | None = None
        self.order = 0
        self.type: str | None = None
        self.use_policy = False
        self.before_actions: list[Dependency] = []
        self.after_actions: list[Dependency] = []
        self.on_show: Predicate | None = None
        self.on_authorized: Predicate | None = None
        self.on_commitable: Predicate | None = None
        self.on_commit: Procedure | None = None
        self.on_finalize: Finalizer | None = None

    def __repr__(self) -> str:
        return f"<Action {self.code!r} label={self.label!r}>"

    # ── Gating ──

    def show(self, obj: Any, context: Context) -> bool:
        """Whether the action should be offered for ``obj``."""
        if self.on_show is not None:
            return bool(self.on_show(obj, context))
        if self.use_policy:
            return self.authorized(obj, context) and self.commitable(obj, context)
        return True

    def authorized(self, obj: Any, context: Context) -> bool:
        if self.on_authorized is not None:
            return bool(self.on_authorized(obj, context))
        policy = self.registry.policy if self.registry is not None else None
        if self.use_policy and policy is not None:
            return bool(policy.allows(context, obj, self.code))
        return True

    def commitable(self, obj: Any, context: Context) -> bool:
        if self.on_commitable is not None:
            return bool(self.on_commitable(obj, context))
        return True

    def has_before_action(self, code: str) -> bool:
        return any(dep.action_code == code for dep in self.before_actions)

    def has_after_action(self, code: str) -> bool:
        return any(dep.action_code == code for dep in self.after_actions)

    # ── Execution ──

    def commit(self, obj: Any, context: Context) -> ActionLog:
        """Run the action against ``obj`` and return its persisted log.

        Raises ActorMissingError when ``context`` has no actor; every other
        failure is recorded on the log as ``aborted``.
        """
        return self._execute(obj, context, ())

    def _execute(self, obj: Any, context: Context, chain: tuple[str, ...]) -> ActionLog:
        if context.actor is None:
            raise ActorMissingError(self.code)

        log = self._initialize_log(obj, context)
        self._emit(ACTION_STARTED, log=log, obj=obj, context=context)

        own_changes: Mapping[str, tuple[Any, Any]] | None = None
        if not self.authorized(obj, context):
            logger.debug("Action %s not authorized for actor %s", self.code, context.actor_id)
            log.abort(UNAUTHORIZED)
        elif not self.commitable(obj, context):
            logger.debug("Action %s not commitable in this context", self.code)
            log.abort(WRONG_CONTEXT)
        else:
            result, own_changes = self._run_stage(obj, context, chain + (self.code,))
            if result.succeeded:
                log.finish()
            else:
                log.abort(result.error or "")

        self._finalize_log(log, obj, context, own_changes)

        if log.is_finished:
            logger.info("Action %s finished (log %s)", self.code, log.id)
            self._emit(ACTION_FINISHED, log=log, obj=obj, context=context)
        else:
            logger.warning("Action %s aborted: %s", self.code, log.error_message)
            self._emit(ACTION_ABORTED, log=log, obj=obj, context=context)
        return log

    def _run_stage(
        self, obj: Any, context: Context, chain: tuple[str, ...]
    ) -> tuple[StageResult, Mapping[str, tuple[Any, Any]] | None]:
        """Before-actions, own commit body, after-actions; failures contained."""
        own_changes: Mapping[str, tuple[Any, Any]] | None = None
        try:
            self._run_dependencies(self.before_actions, obj, context, chain)
            if self.on_commit is not None:
                self.on_commit(obj, context)
            own_changes = _observe(obj)
            self._run_dependencies(self.after_actions, obj, context, chain)
        except Exception as exc:
            logger.exception("Action %s failed during commit", self.code)
            return StageResult.failed(str(exc)), own_changes
        return StageResult.ok(), own_changes

    def _run_dependencies(
        self,
        dependencies: list[Dependency],
        obj: Any,
        context: Context,
        chain: tuple[str, ...],
    ) -> None:
        for dependency in dependencies:
            action = self._resolve(dependency.action_code)
            if action.code in chain:
                raise DependencyCycleError(chain + (action.code,))
            dep_log = action._execute(obj, context, chain)
            if dependency.required and not dep_log.is_finished:
                raise DependencyFailedError(action.code, dep_log.error_message)

    def _resolve(self, code: str) -> Action:
        action = self.registry.lookup(code) if self.registry is not None else None
        if action is None:
            raise ActionNotFoundError(code)
        return action

    # ── Log lifecycle ──

    def _initialize_log(self, obj: Any, context: Context) -> ActionLog:
        # open the change window: edits made before this commit are not ours
        _observe(obj)
        actor_id = context.actor_id
        obj_id = getattr(obj, "id", None)
        log = ActionLog(
            actor_id=str(actor_id) if actor_id is not None else None,
            actionable_type=type(obj).__name__,
            actionable_id=str(obj_id) if obj_id is not None else None,
            action_code=self.code,
            action_label=self.label,
            action_data=context.serialize_data(),
            context=context.serialize(),
            object_before=repr(obj),
        )
        return self._store().create(log)

    def _finalize_log(
        self,
        log: ActionLog,
        obj: Any,
        context: Context,
        own_changes: Mapping[str, tuple[Any, Any]] | None,
    ) -> None:
        if own_changes is None:
            own_changes = _observe(obj)
        log.object_before = {field: pair[0] for field, pair in own_changes.items()}
        log.object_after = {field: pair[1] for field, pair in own_changes.items()}

        if self.on_finalize is not None:
            try:
                self.on_finalize(log, obj, context)
            except Exception as exc:
                logger.exception("Finalize hook of action %s failed", self.code)
                log.abort(str(exc))

        self._store().save(log)

    def _store(self) -> LogStore:
        if self.registry is None:
            return default_log_store()
        return self.registry.log_store

    def _emit(self, event: str, **kwargs: Any) -> None:
        if self.registry is not None:
            self.registry.events.emit(event, action=self, **kwargs)


def _observe(obj: Any) -> Mapping[str, tuple[Any, Any]]:
    diff = getattr(obj, "diff", None)
    if diff is None:
        return {}
    return dict(diff())
