"""Session audit log and call timing."""

from __future__ import annotations

import time
from collections.abc import Iterator

from mho_agent.types import AgentIdentifier, AuditEntry, AuditStatus


class AuditLog:
    """Append-only, in-memory audit trail for one session.

    Entries are frozen dataclasses; the log only grows and exposes read-only
    snapshots.
    """

    def __init__(self) -> None:
        self._entries: list[AuditEntry] = []

    def record(
        self,
        agent: AgentIdentifier,
        action: str,
        status: AuditStatus = AuditStatus.SUCCESS,
    ) -> AuditEntry:
        entry = AuditEntry(agent=agent, action=action, status=status)
        self._entries.append(entry)
        return entry

    def entries(self) -> tuple[AuditEntry, ...]:
        return tuple(self._entries)

    def list_recent(self, limit: int = 20) -> list[AuditEntry]:
        if limit <= 0:
            return []
        return self._entries[-limit:]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[AuditEntry]:
        return iter(tuple(self._entries))


class Timer:
    """Simple context timer used around backend calls."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0
