"""actify: declare, gate, execute and audit named actions on domain objects."""

from .action import UNAUTHORIZED, WRONG_CONTEXT, Action
from .config import Settings, configure_logging, default_log_store, load_settings
from .context import Context
from .definition import ActionDefinition
from .exceptions import (
    ActifyError,
    ActionNotFoundError,
    ActorMissingError,
    ConfigurationError,
    DependencyCycleError,
    DependencyFailedError,
    InvalidDataError,
)
from .models import ActionLog, ActionOptions, Dependency, LogError, LogStatus, StageResult
from .notifications import ACTION_ABORTED, ACTION_FINISHED, ACTION_STARTED, EventBus
from .policy import Policy
from .registry import Actionable, ActionRegistry
from .store import LogStore, MemoryLogStore, SqliteLogStore
from .tracking import ChangeTracked, Trackable

__version__ = "0.1.0"

__all__ = [
    "Action",
    "ActionDefinition",
    "ActionLog",
    "ActionOptions",
    "ActionRegistry",
    "Actionable",
    "ChangeTracked",
    "Context",
    "Dependency",
    "EventBus",
    "LogError",
    "LogStatus",
    "LogStore",
    "MemoryLogStore",
    "Policy",
    "Settings",
    "SqliteLogStore",
    "StageResult",
    "Trackable",
    "configure_logging",
    "default_log_store",
    "load_settings",
    "ActifyError",
    "ActionNotFoundError",
    "ActorMissingError",
    "ConfigurationError",
    "DependencyCycleError",
    "DependencyFailedError",
    "InvalidDataError",
    "ACTION_ABORTED",
    "ACTION_FINISHED",
    "ACTION_STARTED",
    "UNAUTHORIZED",
    "WRONG_CONTEXT",
]
