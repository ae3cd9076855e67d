"""
Flow Editor - Graph editing operations with undo/redo.

Every mutating operation records a snapshot first, so each one is a single
undo step. The editor is where the one-connection-per-port rule is enforced:
linking a port that is already linked replaces the old connection.
"""

import logging
import time
from typing import Any

from interactions.editor.history import DEFAULT_HISTORY_LIMIT, HistoryStack
from interactions.graph.edge import Connection, FlowGraph
from interactions.graph.node import (
    NODE_CLASSES,
    BaseNode,
    Choice,
    DialogueNode,
    NodePosition,
    NodeType,
)

logger = logging.getLogger(__name__)

DEFAULT_SPEAKER = "Entity"
DEFAULT_PED_MODEL = "a_m_y_business_01"
DEFAULT_DIALOGUE_TEXT = "..."
DEFAULT_CHOICE_TEXT = "Next"
DEFAULT_OPTION_TEXT = "New option"


class NodeNotFoundError(KeyError):
    """Raised when an operation names a node that is not in the graph."""


class ChoiceNotFoundError(KeyError):
    """Raised when an operation names a choice that is not on the node."""


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _new_id(prefix: str, taken: set[str]) -> str:
    candidate = f"{prefix}-{_now_ms()}"
    suffix = 1
    unique = candidate
    while unique in taken:
        unique = f"{candidate}-{suffix}"
        suffix += 1
    return unique


def default_node_data(node_type: NodeType) -> dict[str, Any]:
    """Payload a freshly added node starts with."""
    if node_type == NodeType.START:
        return {"model": DEFAULT_PED_MODEL, "npcName": DEFAULT_SPEAKER}
    if node_type == NodeType.DIALOGUE:
        return {"npcName": DEFAULT_SPEAKER, "text": DEFAULT_DIALOGUE_TEXT}
    if node_type == NodeType.CONDITION:
        return {"variableName": "var", "conditionOperator": "==", "variableValue": "true"}
    if node_type == NodeType.SET_VARIABLE:
        return {"variableName": "var", "variableValue": "true"}
    return {}


class FlowEditor:
    """
    Edits a FlowGraph in place.

    Example:
        editor = FlowEditor(project.data)
        start = editor.graph.find_start_node()
        line = editor.add_node(NodeType.DIALOGUE)
        editor.connect(start.id, "main", line.id)
        editor.undo()
    """

    def __init__(self, graph: FlowGraph | None = None, history_limit: int = DEFAULT_HISTORY_LIMIT):
        self.graph = graph if graph is not None else FlowGraph()
        self.history = HistoryStack(limit=history_limit)

    # === HISTORY ===

    def _save_to_history(self) -> None:
        self.history.push(self.graph)

    def undo(self) -> bool:
        previous = self.history.undo(self.graph)
        if previous is None:
            return False
        self.graph = previous
        return True

    def redo(self) -> bool:
        following = self.history.redo(self.graph)
        if following is None:
            return False
        self.graph = following
        return True

    # === LOOKUPS ===

    def _require_node(self, node_id: str) -> BaseNode:
        node = self.graph.get_node(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    def _require_dialogue(self, node_id: str) -> DialogueNode:
        node = self._require_node(node_id)
        if not isinstance(node, DialogueNode):
            raise TypeError(f"Node '{node_id}' is a {node.type} node, not DIALOGUE")
        return node

    def _taken_ids(self) -> set[str]:
        ids = {n.id for n in self.graph.nodes}
        ids.update(c.id for c in self.graph.connections)
        for node in self.graph.nodes:
            if isinstance(node, DialogueNode):
                ids.update(choice.id for choice in node.data.choices)
        return ids

    # === NODES ===

    def add_node(self, node_type: NodeType | str, position: NodePosition | None = None) -> BaseNode:
        """Add a node of the given kind with default content."""
        node_type = NodeType(node_type)
        taken = self._taken_ids()
        node_id = _new_id(node_type.lower(), taken)
        taken.add(node_id)

        data = default_node_data(node_type)
        if node_type == NodeType.DIALOGUE:
            data["choices"] = [{"id": _new_id("c", taken), "text": DEFAULT_CHOICE_TEXT}]

        node = NODE_CLASSES[node_type].model_validate(
            {"id": node_id, "position": position or NodePosition(), "data": data}
        )

        self._save_to_history()
        self.graph.nodes.append(node)
        logger.debug(f"Added {node_type} node '{node_id}'")
        return node

    def delete_node(self, node_id: str) -> None:
        """Remove a node together with every connection touching it."""
        self._require_node(node_id)
        self._save_to_history()
        self.graph.nodes = [n for n in self.graph.nodes if n.id != node_id]
        self.graph.connections = [
            c for c in self.graph.connections if c.from_node_id != node_id and c.to_node_id != node_id
        ]

    def move_node(self, node_id: str, x: float, y: float) -> None:
        node = self._require_node(node_id)
        self._save_to_history()
        node.position = NodePosition(x=x, y=y)

    def update_node_data(self, node_id: str, **fields: Any) -> BaseNode:
        """
        Update payload fields of a node.

        Fields may be given by Python name or document alias. The merged
        payload is validated against the node kind's payload model.
        """
        node = self._require_node(node_id)
        payload_cls = type(node.data)
        aliases = {
            name: info.alias for name, info in payload_cls.model_fields.items() if info.alias
        }
        updates = {aliases.get(key, key): value for key, value in fields.items()}
        merged = {**node.data.model_dump(by_alias=True), **updates}
        new_data = payload_cls.model_validate(merged)

        self._save_to_history()
        node.data = new_data
        return node

    # === CONNECTIONS ===

    def connect(self, from_node_id: str, from_port: str, to_node_id: str) -> Connection | None:
        """
        Link a port to a target node.

        Any connection already on (from_node_id, from_port) is replaced.
        Linking a node to itself is ignored and returns None.
        """
        source = self._require_node(from_node_id)
        self._require_node(to_node_id)
        if from_node_id == to_node_id:
            return None

        conn = Connection(
            id=_new_id("conn", self._taken_ids()),
            from_node_id=from_node_id,
            from_port=from_port,
            to_node_id=to_node_id,
        )

        self._save_to_history()
        self.graph.connections = [
            c
            for c in self.graph.connections
            if not (c.from_node_id == from_node_id and c.from_port == from_port)
        ]
        self.graph.connections.append(conn)

        if isinstance(source, DialogueNode):
            choice = source.data.get_choice(from_port)
            if choice is not None:
                choice.next_node_id = to_node_id

        return conn

    def delete_connection(self, connection_id: str) -> bool:
        """Remove a connection, clearing the dialogue choice that used it."""
        conn = next((c for c in self.graph.connections if c.id == connection_id), None)
        if conn is None:
            return False

        self._save_to_history()
        self.graph.connections = [c for c in self.graph.connections if c.id != connection_id]

        source = self.graph.get_node(conn.from_node_id)
        if isinstance(source, DialogueNode):
            choice = source.data.get_choice(conn.from_port)
            if choice is not None:
                choice.next_node_id = None
        return True

    # === CHOICES ===

    def add_choice(self, node_id: str, text: str = DEFAULT_OPTION_TEXT) -> Choice:
        node = self._require_dialogue(node_id)
        choice = Choice(id=_new_id("c", self._taken_ids()), text=text)

        self._save_to_history()
        node.data.choices.append(choice)
        return choice

    def remove_choice(self, node_id: str, choice_id: str) -> None:
        """Remove a choice and the connection leaving its port."""
        node = self._require_dialogue(node_id)
        if node.data.get_choice(choice_id) is None:
            raise ChoiceNotFoundError(choice_id)

        self._save_to_history()
        node.data.choices = [c for c in node.data.choices if c.id != choice_id]
        self.graph.connections = [
            c
            for c in self.graph.connections
            if not (c.from_node_id == node_id and c.from_port == choice_id)
        ]
