"""Registry of active poll sessions.

Sessions are keyed by release index rather than source id, since the same
id may be configured more than once.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from dataclasses import dataclass

from polystreams.scheduling.models import SourceId
from polystreams.scheduling.session import PollSession


@dataclass(slots=True)
class ActiveSession:
    """A running session and the task driving it."""

    session: PollSession
    task: asyncio.Task[None]


class SessionRegistry:
    """Explicit arena of active sessions.

    Entries are added when the stagger releases a source and removed when
    their session is cancelled.
    """

    def __init__(self) -> None:
        self._entries: dict[int, ActiveSession] = {}

    def add(self, session: PollSession, task: asyncio.Task[None]) -> None:
        """Register a started session.

        Raises:
            ValueError: If a session with the same release index is active.
        """
        if session.index in self._entries:
            raise ValueError(f"session with release index {session.index} already registered")
        self._entries[session.index] = ActiveSession(session, task)

    def remove(self, index: int) -> ActiveSession | None:
        return self._entries.pop(index, None)

    def get(self, index: int) -> PollSession | None:
        entry = self._entries.get(index)
        return entry.session if entry is not None else None

    @property
    def active_count(self) -> int:
        return len(self._entries)

    def source_ids(self) -> list[SourceId]:
        """Source ids of active sessions, in release order."""
        return [self._entries[index].session.source_id for index in sorted(self._entries)]

    def sessions(self) -> list[PollSession]:
        return [self._entries[index].session for index in sorted(self._entries)]

    def __iter__(self) -> Iterator[ActiveSession]:
        return iter([self._entries[index] for index in sorted(self._entries)])

    def __len__(self) -> int:
        return len(self._entries)

    def cancel_all(self) -> list[asyncio.Task[None]]:
        """Cancel every session task and empty the registry.

        Returns:
            The cancelled tasks, for the caller to await.
        """
        entries, self._entries = self._entries, {}
        tasks = [entry.task for entry in entries.values()]
        for task in tasks:
            task.cancel()
        return tasks
