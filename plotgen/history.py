"""Undo/redo over engine snapshots."""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List

from .engine import VectorEngine

logger = logging.getLogger(__name__)


class History:
    """Bounded snapshot history.

    Call :meth:`record` *before* a change so the pre-change state can be
    restored.  Recording clears the redo stack.
    """

    def __init__(self, engine: VectorEngine, limit: int = 50) -> None:
        self.engine = engine
        self.limit = max(1, int(limit))
        self._undo: List[Dict[str, Any]] = []
        self._redo: List[Dict[str, Any]] = []

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def record(self) -> None:
        self.push(self.engine.snapshot())

    def push(self, snapshot: Dict[str, Any]) -> None:
        """Record an externally taken snapshot as the newest undo entry."""
        self._undo.append(copy.deepcopy(snapshot))
        if len(self._undo) > self.limit:
            del self._undo[0]
        self._redo.clear()

    def undo(self) -> bool:
        if not self._undo:
            return False
        self._redo.append(self.engine.snapshot())
        self.engine.restore(self._undo.pop())
        logger.debug("Undo (%d left)", len(self._undo))
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        self._undo.append(self.engine.snapshot())
        self.engine.restore(self._redo.pop())
        logger.debug("Redo (%d left)", len(self._redo))
        return True

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()


__all__ = ["History"]
