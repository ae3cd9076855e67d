"""
Edge Protocol - How nodes connect in a flow graph.

A connection leaves a named port on its source node:
- "main": the single exit of START, SET_VARIABLE and EVENT nodes
- "true" / "false": the two branches of a CONDITION node
- <choice id>: one exit per player choice on a DIALOGUE node

END nodes have no exits.

The editor keeps at most one connection per (from_node_id, from_port) pair by
replacing the old one on every new link. The lookup helpers here do not rely
on that: when several connections share a source and port, the first one in
``connections`` order wins.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from interactions.graph.condition import ConditionOperator
from interactions.graph.node import (
    FALSE_PORT,
    MAIN_PORT,
    TRUE_PORT,
    BaseNode,
    DialogueNode,
    FlowNode,
    NodeType,
)


class Connection(BaseModel):
    """
    A directed, port-qualified edge between two nodes.

    Example:
        Connection(
            id="conn-1718000000000",
            from_node_id="condition-1",
            from_port="true",
            to_node_id="dialogue-2",
        )
    """

    id: str
    from_node_id: str = Field(alias="fromNodeId", description="Source node ID")
    from_port: str = Field(
        default=MAIN_PORT,
        alias="fromPort",
        description="'main', 'true', 'false', or a dialogue choice id",
    )
    to_node_id: str = Field(alias="toNodeId", description="Target node ID")

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class FlowGraph(BaseModel):
    """
    Complete description of one interaction flow.

    Node order carries no meaning. Connection order only matters as the
    tie-break when more than one connection leaves the same port.
    """

    nodes: list[FlowNode] = Field(default_factory=list)
    connections: list[Connection] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def get_node(self, node_id: str) -> BaseNode | None:
        """Get a node by ID."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def find_start_node(self) -> BaseNode | None:
        """Get the first START node, if any."""
        for node in self.nodes:
            if node.type == NodeType.START:
                return node
        return None

    def get_outgoing_connections(self, node_id: str) -> list[Connection]:
        """Get all connections leaving a node, in connection order."""
        return [c for c in self.connections if c.from_node_id == node_id]

    def get_incoming_connections(self, node_id: str) -> list[Connection]:
        """Get all connections entering a node."""
        return [c for c in self.connections if c.to_node_id == node_id]

    def find_connection(self, from_node_id: str, from_port: str | None = None) -> Connection | None:
        """
        Get the first connection leaving ``from_node_id``.

        Args:
            from_node_id: Source node ID
            from_port: Port to match. None or "" matches any port.

        Returns:
            The first matching connection, or None
        """
        for conn in self.connections:
            if conn.from_node_id != from_node_id:
                continue
            if from_port and conn.from_port != from_port:
                continue
            return conn
        return None

    def find_next_node(self, from_node_id: str, from_port: str | None = None) -> BaseNode | None:
        """
        Follow one edge.

        A missing connection and a connection whose target does not exist
        (dangling edge) both yield None; neither is an error.
        """
        conn = self.find_connection(from_node_id, from_port)
        if conn is None:
            return None
        return self.get_node(conn.to_node_id)

    def valid_ports(self, node: BaseNode) -> set[str]:
        """Ports a node of this kind may have connections on."""
        if node.type == NodeType.CONDITION:
            return {TRUE_PORT, FALSE_PORT}
        if isinstance(node, DialogueNode):
            return {choice.id for choice in node.data.choices}
        if node.type == NodeType.END:
            return set()
        return {MAIN_PORT}

    def validate(self) -> list[str]:
        """
        Validate the graph structure.

        Used by import and editing tools; the executor never calls this and
        copes with every problem reported here by treating it as a dead end.
        """
        errors: list[str] = []

        seen_ids: set[str] = set()
        for node in self.nodes:
            if node.id in seen_ids:
                errors.append(f"Duplicate node ID: '{node.id}'")
            seen_ids.add(node.id)

        if self.find_start_node() is None:
            errors.append("No START node found")

        # Check connection references
        seen_ports: set[tuple[str, str]] = set()
        for conn in self.connections:
            source = self.get_node(conn.from_node_id)
            if source is None:
                errors.append(
                    f"Connection '{conn.id}' references missing source '{conn.from_node_id}'"
                )
            elif conn.from_port not in self.valid_ports(source):
                errors.append(
                    f"Connection '{conn.id}' leaves invalid port '{conn.from_port}' "
                    f"on {source.type} node '{source.id}'"
                )
            if self.get_node(conn.to_node_id) is None:
                errors.append(
                    f"Connection '{conn.id}' references missing target '{conn.to_node_id}'"
                )

            key = (conn.from_node_id, conn.from_port)
            if key in seen_ports:
                errors.append(
                    f"Multiple connections leave port '{conn.from_port}' "
                    f"of node '{conn.from_node_id}'; only the first is followed"
                )
            seen_ports.add(key)

        valid_operators = {op.value for op in ConditionOperator}
        for node in self.nodes:
            if node.type == NodeType.CONDITION:
                operator = node.data.operator
                if operator and operator not in valid_operators:
                    errors.append(
                        f"Condition node '{node.id}' has invalid operator '{operator}'. "
                        f"Valid: {sorted(valid_operators)}"
                    )

            # Dialogue choices mirror the connection table
            if isinstance(node, DialogueNode):
                for choice in node.data.choices:
                    conn = self.find_connection(node.id, choice.id)
                    target = conn.to_node_id if conn else None
                    if choice.next_node_id is not None and choice.next_node_id != target:
                        errors.append(
                            f"Choice '{choice.id}' on node '{node.id}' points to "
                            f"'{choice.next_node_id}' but its connection targets '{target}'"
                        )

        return errors

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase document shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def find_next_node(
    graph: FlowGraph,
    from_node_id: str,
    from_port: str | None = None,
) -> BaseNode | None:
    """Find the node connected from ``from_node_id`` via ``from_port``."""
    return graph.find_next_node(from_node_id, from_port)
