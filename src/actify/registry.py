"""Per-type action registries."""

from __future__ import annotations

import logging
from typing import Any, Callable, ClassVar, Iterator, Mapping

from .action import Action
from .config import default_log_store, load_settings
from .context import Context
from .definition import ActionDefinition
from .exceptions import ActionNotFoundError, ConfigurationError
from .notifications import EventBus
from .policy import Policy
from .store import LogStore

logger = logging.getLogger(__name__)

DefinitionBlock = Callable[[ActionDefinition], Any]


class ActionRegistry:
    """Maps action codes to actions for one owning type.

    Declarations write into the registry; callers discover and invoke
    actions through ``all()`` and ``registry[code]``.
    """

    def __init__(
        self,
        owner: type | None = None,
        *,
        log_store: LogStore | None = None,
        policy: Policy | None = None,
        use_policy: bool = False,
    ) -> None:
        self.owner = owner
        self.policy = policy
        self.use_policy = use_policy
        self.events = EventBus()
        self._log_store = log_store
        self._actions: dict[str, Action] = {}

    def __repr__(self) -> str:
        owner = self.owner.__name__ if self.owner is not None else None
        return f"<ActionRegistry owner={owner} actions={list(self._actions)}>"

    @property
    def log_store(self) -> LogStore:
        if self._log_store is None:
            self._log_store = default_log_store()
        return self._log_store

    @log_store.setter
    def log_store(self, store: LogStore) -> None:
        self._log_store = store

    def use_policy_in_actionable(self, accept: bool = True) -> None:
        """Default ``use_policy`` for actions declared from now on."""
        self.use_policy = accept

    # ── Declaration ──

    def define(
        self,
        code: str,
        options: Mapping[str, Any] | None = None,
        block: DefinitionBlock | None = None,
        **kwargs: Any,
    ) -> ActionDefinition:
        """Declare an action, or layer new options onto an existing one."""
        if options is not None and not isinstance(options, Mapping):
            raise ConfigurationError(
                f"Action options must be a mapping, got {type(options).__name__}"
            )
        merged: dict[str, Any] = {str(k): v for k, v in (options or {}).items()}
        merged.update(kwargs)
        if "use_policy" not in merged and code not in self._actions:
            merged["use_policy"] = self.use_policy

        definition = ActionDefinition(self, code, merged)
        if block is not None:
            block(definition)
        logger.debug("Defined action %s on %r", code, self)
        return definition

    def register(self, code: str, action: Action) -> None:
        action.registry = self
        self._actions[code] = action

    # ── Lookup ──

    def lookup(self, code: str) -> Action | None:
        return self._actions.get(code)

    def all(self) -> dict[str, Action]:
        return dict(self._actions)

    def visible(self, obj: Any, context: Context) -> list[Action]:
        """Actions to offer for ``obj``, in presentation order."""
        shown = [action for action in self._actions.values() if action.show(obj, context)]
        return sorted(shown, key=lambda action: action.order)

    def __getitem__(self, code: str) -> Action:
        try:
            return self._actions[code]
        except KeyError:
            raise ActionNotFoundError(code)

    def __contains__(self, code: object) -> bool:
        return code in self._actions

    def __iter__(self) -> Iterator[str]:
        return iter(self._actions)

    def __len__(self) -> int:
        return len(self._actions)


class Actionable:
    """Mixin giving a class its own ``Actions`` registry.

    The registry is built once, when the first actionable class in a
    hierarchy is created; subclasses share it. The ``use_policy`` default is
    kept per class, so a subclass can change it without touching its parent.
    ``create`` and ``update`` are installed hidden with an empty commit so
    they can be re-opened later.

        class Invoice(ChangeTracked, Actionable, use_policy=True):
            ...

        Invoice.action("approve", label="Approve", block=configure_approve)
        Invoice.Actions["approve"].commit(invoice, Context.build(actor=user))
    """

    Actions: ClassVar[ActionRegistry]
    _actify_use_policy: ClassVar[bool] = False

    def __init_subclass__(
        cls,
        *,
        log_store: LogStore | None = None,
        policy: Policy | None = None,
        use_policy: bool | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init_subclass__(**kwargs)
        registry = getattr(cls, "Actions", None)
        if registry is None:
            default = load_settings().use_policy if use_policy is None else use_policy
            registry = ActionRegistry(
                cls,
                log_store=log_store,
                policy=policy,
                use_policy=default,
            )
            cls.Actions = registry
            cls._actify_use_policy = default
            _install_defaults(registry)
            return

        if log_store is not None or policy is not None:
            raise ConfigurationError(
                f"{cls.__name__} shares the Actions registry of its parent; "
                "log_store and policy can only be set on the first actionable class"
            )
        cls._actify_use_policy = (
            cls._actify_use_policy if use_policy is None else bool(use_policy)
        )

    @classmethod
    def action(
        cls,
        code: str,
        options: Mapping[str, Any] | None = None,
        block: DefinitionBlock | None = None,
        **kwargs: Any,
    ) -> ActionDefinition:
        given = kwargs if not isinstance(options, Mapping) else {**options, **kwargs}
        if "use_policy" not in given and code not in cls.Actions:
            kwargs["use_policy"] = cls._actify_use_policy
        return cls.Actions.define(code, options, block, **kwargs)

    @classmethod
    def use_policy_in_actionable(cls, accept: bool = True) -> None:
        """Default ``use_policy`` for actions this class declares from now on."""
        cls._actify_use_policy = accept


def _noop(obj: Any, context: Context) -> None:
    return None


def _hidden(obj: Any, context: Context) -> bool:
    return False


def _install_defaults(registry: ActionRegistry) -> None:
    for code, label in (("create", "Create"), ("update", "Update")):
        definition = registry.define(code, label=label, use_policy=False)
        definition.show(_hidden)
        definition.commit(_noop)
