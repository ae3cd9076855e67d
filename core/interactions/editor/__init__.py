"""Graph editing operations and undo/redo history."""

from interactions.editor.editor import ChoiceNotFoundError, FlowEditor, NodeNotFoundError
from interactions.editor.history import HistoryStack

__all__ = [
    "FlowEditor",
    "HistoryStack",
    "NodeNotFoundError",
    "ChoiceNotFoundError",
]
