"""All-or-nothing execution boundary for claim operations.

Every public operation (bind, claim, invalidate) runs inside a scope:

- A single asyncio.Lock orders scopes across tasks, so no two operations
  interleave their effects.
- A scope opened while another scope of the same boundary is active in the
  current context (a ledger callback re-entering the service) nests instead
  of waiting on the lock.
- Effects register a compensation with ``scope.on_rollback``. If the scope
  exits with an exception the compensations run newest-first and the
  exception propagates.
- A nested scope that commits is final. Its compensations are dropped, so a
  later failure of the outer scope cannot resurrect state the nested
  operation consumed (its external effects are already settled).
- Work registered with ``scope.after_commit`` runs once the outermost scope
  has finished and released the lock. Work of committed nested scopes runs
  even when the outer scope fails; work of a failed scope never runs.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

Compensation = Callable[..., Awaitable[Any]]

_boundary_ids = itertools.count()


class BoundaryScope:
    """Undo journal and commit hooks of one operation."""

    def __init__(self, operation: str, parent: Optional["BoundaryScope"] = None):
        self.operation = operation
        self.parent = parent
        self._undo: List[Tuple[str, Compensation, tuple]] = []
        self._after: List[Tuple[Compensation, tuple]] = []
        # Commit hooks of finished scopes; only used on the outermost scope.
        self._settled: List[Tuple[Compensation, tuple]] = []

    @property
    def depth(self) -> int:
        return 0 if self.parent is None else self.parent.depth + 1

    @property
    def root(self) -> "BoundaryScope":
        return self if self.parent is None else self.parent.root

    def on_rollback(self, label: str, fn: Compensation, *args: Any) -> None:
        self._undo.append((label, fn, args))

    def after_commit(self, fn: Compensation, *args: Any) -> None:
        self._after.append((fn, args))

    def pending(self) -> List[str]:
        return [label for label, _, _ in self._undo]


class AtomicBoundary:
    def __init__(self, on_unwind: Optional[Callable[[str, int], None]] = None):
        # Created on first use so it binds to the loop that runs the scopes.
        self._lock: Optional[asyncio.Lock] = None
        self._current: ContextVar[Optional[BoundaryScope]] = ContextVar(
            f"gclaim_boundary_{next(_boundary_ids)}", default=None
        )
        self._on_unwind = on_unwind
        self.rollbacks = 0

    @property
    def active(self) -> bool:
        return self._current.get() is not None

    @asynccontextmanager
    async def scope(self, operation: str) -> AsyncIterator[BoundaryScope]:
        parent = self._current.get()
        if parent is None:
            if self._lock is None:
                self._lock = asyncio.Lock()
            lock = self._lock
            await lock.acquire()
        scope = BoundaryScope(operation, parent)
        token = self._current.set(scope)
        try:
            try:
                yield scope
            except BaseException as exc:
                await self._unwind(scope, exc)
                raise
            finally:
                self._current.reset(token)
                if parent is None:
                    lock.release()
            scope.root._settled.extend(scope._after)
            scope._undo.clear()
        finally:
            if parent is None:
                for fn, args in scope._settled:
                    await fn(*args)

    async def _unwind(self, scope: BoundaryScope, exc: BaseException) -> None:
        if not scope._undo:
            return
        self.rollbacks += 1
        logger.warning(
            "Rolling back %s (depth %d) after %s: %s",
            scope.operation, scope.depth, type(exc).__name__, ", ".join(reversed(scope.pending())),
        )
        for label, fn, args in reversed(scope._undo):
            try:
                await fn(*args)
            except Exception:
                logger.exception("Compensation '%s' failed during %s rollback", label, scope.operation)
        scope._undo.clear()
        scope._after.clear()
        if self._on_unwind is not None:
            self._on_unwind(scope.operation, scope.depth)


__all__ = ["AtomicBoundary", "BoundaryScope", "Compensation"]
