"""Undo/redo history for the flow editor.

Snapshots are whole-graph deep copies. ``past`` holds the states before each
edit (oldest first), ``future`` the states undone (next redo first). Any new
edit clears ``future``.
"""

from interactions.graph.edge import FlowGraph

DEFAULT_HISTORY_LIMIT = 100


class HistoryStack:
    """Bounded stack of immutable graph snapshots."""

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT):
        if limit < 1:
            raise ValueError("History limit must be at least 1")
        self.limit = limit
        self._past: list[FlowGraph] = []
        self._future: list[FlowGraph] = []

    @property
    def can_undo(self) -> bool:
        return len(self._past) > 0

    @property
    def can_redo(self) -> bool:
        return len(self._future) > 0

    @property
    def past(self) -> list[FlowGraph]:
        return list(self._past)

    @property
    def future(self) -> list[FlowGraph]:
        return list(self._future)

    def push(self, snapshot: FlowGraph) -> None:
        """Record the state before an edit."""
        self._append_past(snapshot)
        self._future.clear()

    def undo(self, current: FlowGraph) -> FlowGraph | None:
        """
        Step back one edit.

        Args:
            current: The state being left; it becomes the next redo

        Returns:
            The previous state, or None if there is nothing to undo
        """
        if not self._past:
            return None
        previous = self._past.pop()
        self._future.insert(0, current.model_copy(deep=True))
        return previous

    def redo(self, current: FlowGraph) -> FlowGraph | None:
        """Step forward one undone edit, or None if there is nothing to redo."""
        if not self._future:
            return None
        following = self._future.pop(0)
        self._append_past(current)
        return following

    def _append_past(self, snapshot: FlowGraph) -> None:
        self._past.append(snapshot.model_copy(deep=True))
        if len(self._past) > self.limit:
            self._past = self._past[-self.limit :]

    def clear(self) -> None:
        self._past.clear()
        self._future.clear()
