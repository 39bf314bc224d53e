"""
In-memory cache of every group's state, in front of a GroupStateRepository.

Access is serialized per group (never with one global lock):
* `read(group_id)` gives shared access, any number of readers at the same time.
* `write(group_id)` gives exclusive access through a StateGuard. The guard works on a copy of the state, and must be
  resolved explicitly before the block ends:
    - `commit()` saves the copy (a single attempt) and only then publishes it to the cache.
    - `discard()` throws the copy away.
  Leaving the block without doing either raises GuardDisciplineError. Leaving it through an exception discards.

So the cache never holds a state that was not persisted, and a discarded session leaves both the cache and the
stored document untouched.
"""

from __future__ import annotations

from contextlib import contextmanager
from copy import deepcopy
from threading import Condition, Lock
from types import TracebackType
from typing import Iterator, Optional

from src.chess.group_state import GroupGameState
from src.core.exceptions import (
    GameError,
    GuardDisciplineError,
    PersistenceError,
    RepositoryError,
)
from src.core.logger import get_logger
from src.db.repository import GroupStateRepository

logger = get_logger(__name__)


class ReadWriteLock:
    """Many readers or a single writer."""

    def __init__(self) -> None:
        self._condition = Condition(Lock())
        self._readers = 0
        self._writer = False

    def acquire_shared(self) -> None:
        with self._condition:
            self._condition.wait_for(lambda: not self._writer)
            self._readers += 1

    def release_shared(self) -> None:
        with self._condition:
            self._readers -= 1
            if self._readers == 0:
                self._condition.notify_all()

    def acquire_exclusive(self) -> None:
        with self._condition:
            self._condition.wait_for(lambda: not self._writer and self._readers == 0)
            self._writer = True

    def release_exclusive(self) -> None:
        with self._condition:
            self._writer = False
            self._condition.notify_all()

    @contextmanager
    def shared(self) -> Iterator[None]:
        self.acquire_shared()
        try:
            yield
        finally:
            self.release_shared()

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        self.acquire_exclusive()
        try:
            yield
        finally:
            self.release_exclusive()


class GroupStateStore:
    def __init__(self, repository: GroupStateRepository) -> None:
        self._repository = repository
        self._states: dict[str, GroupGameState] = {}
        self._locks: dict[str, ReadWriteLock] = {}
        # only guards the lookup/creation of the per group locks
        self._registry_lock = Lock()

    @contextmanager
    def read(self, group_id: str) -> Iterator[GroupGameState]:
        """Shared access. The state yielded must not be mutated."""
        lock = self._lock_for(group_id)
        self._ensure_loaded(group_id, lock)
        with lock.shared():
            yield self._states[group_id]

    def write(self, group_id: str) -> StateGuard:
        """Exclusive access, to be used as `with store.write(group_id) as guard:`"""
        return StateGuard(self, group_id)

    # -- Internal helpers --
    def _lock_for(self, group_id: str) -> ReadWriteLock:
        with self._registry_lock:
            return self._locks.setdefault(group_id, ReadWriteLock())

    def _ensure_loaded(self, group_id: str, lock: ReadWriteLock) -> None:
        if group_id in self._states:
            return
        with lock.exclusive():
            self._load_locked(group_id)

    def _load_locked(self, group_id: str) -> None:
        """Caller holds the group's exclusive lock."""
        if group_id in self._states:
            return
        self._states[group_id] = self._load(group_id)

    def _load(self, group_id: str) -> GroupGameState:
        """A missing or unreadable document means a group without any games."""
        model = self._repository.load(group_id)
        if model is None:
            return GroupGameState()
        try:
            return GroupGameState.from_model(model)
        except GameError as exc:
            logger.warning("Discarding invalid chess state of group %s: %s", group_id, exc)
            return GroupGameState()

    def _save(self, group_id: str, state: GroupGameState) -> None:
        self._repository.save(group_id, state.to_model())
        self._states[group_id] = state


class StateGuard:
    """Exclusive, single-use handle on a group's state. See module docstring."""

    def __init__(self, store: GroupStateStore, group_id: str) -> None:
        self.group_id = group_id
        self._store = store
        self._lock = store._lock_for(group_id)
        self._state: Optional[GroupGameState] = None
        self._resolved = False

    @property
    def state(self) -> GroupGameState:
        if self._state is None:
            raise GuardDisciplineError("StateGuard used outside of its `with` block")
        return self._state

    def __enter__(self) -> StateGuard:
        self._lock.acquire_exclusive()
        try:
            self._store._load_locked(self.group_id)
        except BaseException:
            self._lock.release_exclusive()
            raise
        self._state = deepcopy(self._store._states[self.group_id])
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        try:
            if exc_type is None and not self._resolved:
                raise GuardDisciplineError(
                    f"State of group {self.group_id} was locked for writing, but neither committed nor discarded"
                )
        finally:
            self._resolved = True
            self._state = None
            self._lock.release_exclusive()

    def commit(self) -> None:
        """Persist the state (one attempt), then make it the current state of the group."""
        state = self.state
        self._mark_resolved()
        try:
            self._store._save(self.group_id, state)
        except RepositoryError as exc:
            logger.error("Failed to persist state of group %s: %s", self.group_id, exc)
            raise PersistenceError(
                "Could not save the game. Your last action has not been applied."
            ) from exc

    def discard(self) -> None:
        """Drop every change made through this guard."""
        _ = self.state
        self._mark_resolved()

    def _mark_resolved(self) -> None:
        if self._resolved:
            raise GuardDisciplineError(
                f"State guard of group {self.group_id} was already committed or discarded"
            )
        self._resolved = True
