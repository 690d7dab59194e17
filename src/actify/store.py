"""Persistence for action logs."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from .models import ActionLog, LogError, LogStatus, utcnow

_SCHEMA = """
CREATE TABLE IF NOT EXISTS action_logs (
    id TEXT PRIMARY KEY,
    status TEXT NOT NULL DEFAULT 'created',
    actor_id TEXT,
    actionable_type TEXT,
    actionable_id TEXT,
    action_code TEXT NOT NULL,
    action_label TEXT,
    action_data TEXT NOT NULL DEFAULT '{}',
    context TEXT NOT NULL DEFAULT '{}',
    object_before TEXT,
    object_after TEXT,
    error TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_logs_actionable
    ON action_logs(actionable_type, actionable_id);

CREATE INDEX IF NOT EXISTS idx_logs_code_status
    ON action_logs(action_code, status);
"""


def _dt_to_str(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return dt.isoformat()


def _str_to_dt(s: str | None) -> datetime | None:
    if s is None:
        return None
    return datetime.fromisoformat(s)


def _matches(
    log: ActionLog,
    action_code: str | None,
    status: LogStatus | None,
    actionable_id: str | None,
) -> bool:
    if action_code is not None and log.action_code != action_code:
        return False
    if status is not None and log.status != status:
        return False
    if actionable_id is not None and log.actionable_id != actionable_id:
        return False
    return True


@runtime_checkable
class LogStore(Protocol):
    """Write side used by the engine, plus the reads used by callers."""

    def create(self, log: ActionLog) -> ActionLog: ...

    def save(self, log: ActionLog) -> ActionLog: ...

    def get(self, log_id: str) -> ActionLog | None: ...

    def list(
        self,
        action_code: str | None = None,
        status: LogStatus | None = None,
        actionable_id: str | None = None,
    ) -> list[ActionLog]: ...


class MemoryLogStore:
    """Keeps logs in a dict, in creation order."""

    def __init__(self) -> None:
        self._logs: dict[str, ActionLog] = {}

    def create(self, log: ActionLog) -> ActionLog:
        log.created_at = log.created_at or utcnow()
        self._logs[log.id] = log.model_copy(deep=True)
        return log

    def save(self, log: ActionLog) -> ActionLog:
        log.updated_at = utcnow()
        self._logs[log.id] = log.model_copy(deep=True)
        return log

    def get(self, log_id: str) -> ActionLog | None:
        log = self._logs.get(log_id)
        return log.model_copy(deep=True) if log else None

    def list(
        self,
        action_code: str | None = None,
        status: LogStatus | None = None,
        actionable_id: str | None = None,
    ) -> list[ActionLog]:
        return [
            log.model_copy(deep=True)
            for log in self._logs.values()
            if _matches(log, action_code, status, actionable_id)
        ]

    def __len__(self) -> int:
        return len(self._logs)


class SqliteLogStore:
    """SQLite-backed persistence for action logs."""

    def __init__(self, db_path: str | Path = ":memory:") -> None:
        self._conn = sqlite3.connect(str(db_path))
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)

    def close(self) -> None:
        self._conn.close()

    def create(self, log: ActionLog) -> ActionLog:
        log.created_at = log.created_at or utcnow()
        self._write(log)
        return log

    def save(self, log: ActionLog) -> ActionLog:
        log.updated_at = utcnow()
        self._write(log)
        return log

    def _write(self, log: ActionLog) -> None:
        self._conn.execute(
            """INSERT OR REPLACE INTO action_logs
               (id, status, actor_id, actionable_type, actionable_id, action_code,
                action_label, action_data, context, object_before, object_after,
                error, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                log.id,
                log.status.value,
                log.actor_id,
                log.actionable_type,
                log.actionable_id,
                log.action_code,
                log.action_label,
                log.action_data,
                log.context,
                json.dumps(log.object_before, default=str),
                json.dumps(log.object_after, default=str),
                log.error.model_dump_json() if log.error else None,
                _dt_to_str(log.created_at),
                _dt_to_str(log.updated_at),
            ),
        )
        self._conn.commit()

    def get(self, log_id: str) -> ActionLog | None:
        row = self._conn.execute(
            "SELECT * FROM action_logs WHERE id = ?", (log_id,)
        ).fetchone()
        if row is None:
            return None
        return self._row_to_log(row)

    def list(
        self,
        action_code: str | None = None,
        status: LogStatus | None = None,
        actionable_id: str | None = None,
    ) -> list[ActionLog]:
        clauses: list[str] = []
        params: list[Any] = []
        if action_code is not None:
            clauses.append("action_code = ?")
            params.append(action_code)
        if status is not None:
            clauses.append("status = ?")
            params.append(status.value)
        if actionable_id is not None:
            clauses.append("actionable_id = ?")
            params.append(actionable_id)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = self._conn.execute(
            f"SELECT * FROM action_logs{where} ORDER BY created_at, rowid", params
        ).fetchall()
        return [self._row_to_log(r) for r in rows]

    def _row_to_log(self, row: sqlite3.Row) -> ActionLog:
        error_raw = row["error"]
        return ActionLog(
            id=row["id"],
            status=LogStatus(row["status"]),
            actor_id=row["actor_id"],
            actionable_type=row["actionable_type"],
            actionable_id=row["actionable_id"],
            action_code=row["action_code"],
            action_label=row["action_label"],
            action_data=row["action_data"],
            context=row["context"],
            object_before=json.loads(row["object_before"]) if row["object_before"] else None,
            object_after=json.loads(row["object_after"]) if row["object_after"] else None,
            error=LogError.model_validate_json(error_raw) if error_raw else None,
            created_at=_str_to_dt(row["created_at"]),
            updated_at=_str_to_dt(row["updated_at"]),
        )
