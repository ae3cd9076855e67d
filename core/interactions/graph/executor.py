"""
Flow Executor - Steps through logic nodes.

Given a node to start from, the executor:
1. Stops at DIALOGUE and END nodes (the only successful outcome)
2. Writes memory for SET_VARIABLE nodes and follows their "main" exit
3. Evaluates CONDITION nodes and follows the "true" or "false" exit
4. Passes straight through START and EVENT nodes
5. Gives up on a missing node, a missing exit, or after max_iterations steps

The walk is synchronous and never raises. ``memory`` is mutated in place and
is the only side effect. There is no visited-node tracking: a cycle of logic
nodes is stopped by the iteration bound alone.
"""

import logging
from dataclasses import dataclass, field
from enum import StrEnum

from interactions.graph.condition import MemoryValue, evaluate_condition
from interactions.graph.edge import FlowGraph
from interactions.graph.node import (
    FALSE_PORT,
    TRUE_PORT,
    ConditionNode,
    EventNode,
    SetVariableNode,
    StartNode,
)

logger = logging.getLogger(__name__)

GameMemory = dict[str, MemoryValue]

DEFAULT_MAX_ITERATIONS = 100


class TraversalStatus(StrEnum):
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FailureReason(StrEnum):
    """Why a walk stopped short of a presentational node (diagnostics only)."""

    MISSING_NODE = "missing_node"
    MISSING_EDGE = "missing_edge"
    MAX_ITERATIONS = "max_iterations"
    UNKNOWN_KIND = "unknown_kind"


@dataclass
class TraversalResult:
    """Outcome of one traversal."""

    status: TraversalStatus = TraversalStatus.RUNNING
    node_id: str | None = None  # DIALOGUE/END node reached
    path: list[str] = field(default_factory=list)  # Node IDs visited
    steps: int = 0
    reason: FailureReason | None = None

    @property
    def success(self) -> bool:
        return self.status == TraversalStatus.SUCCEEDED


def run_traversal(
    graph: FlowGraph,
    start_node_id: str,
    memory: GameMemory,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> TraversalResult:
    """
    Walk the graph from ``start_node_id`` to the next DIALOGUE or END node.

    Args:
        graph: Flow graph (not modified)
        start_node_id: Node to start from
        memory: Game memory, updated in place by SET_VARIABLE nodes
        max_iterations: Maximum nodes to visit before giving up

    Returns:
        TraversalResult with the node reached, or a failed status
    """
    result = TraversalResult()
    current_id: str | None = start_node_id

    def fail(reason: FailureReason) -> TraversalResult:
        result.status = TraversalStatus.FAILED
        result.reason = reason
        logger.info(f"No path from '{start_node_id}': {reason} after {result.steps} step(s)")
        return result

    while result.steps < max_iterations:
        result.steps += 1

        node = graph.get_node(current_id) if current_id else None
        if node is None:
            return fail(FailureReason.MISSING_NODE)
        result.path.append(node.id)

        # Terminal nodes - stop and return
        if node.is_presentational:
            result.status = TraversalStatus.SUCCEEDED
            result.node_id = node.id
            return result

        if isinstance(node, SetVariableNode):
            name = node.data.variable_name
            if name:
                memory[name] = node.data.value or ""
                logger.debug(f"Set {name} = {memory[name]!r}")
            port = None

        elif isinstance(node, ConditionNode):
            passed = evaluate_condition(
                node.data.variable_name,
                node.data.operator,
                node.data.compare_value,
                memory,
            )
            logger.debug(
                f"Condition on '{node.id}': {node.data.variable_name} "
                f"{node.data.operator or '=='} {node.data.compare_value!r} -> {passed}"
            )
            port = TRUE_PORT if passed else FALSE_PORT

        elif isinstance(node, StartNode | EventNode):
            port = None

        else:
            return fail(FailureReason.UNKNOWN_KIND)

        next_node = graph.find_next_node(node.id, port)
        if next_node is None:
            return fail(FailureReason.MISSING_EDGE)
        current_id = next_node.id

    # Infinite loop protection
    logger.warning(f"Traversal from '{start_node_id}' exceeded {max_iterations} iterations")
    return fail(FailureReason.MAX_ITERATIONS)


def traverse_logic(
    graph: FlowGraph,
    start_node_id: str,
    memory: GameMemory,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> str | None:
    """
    Traverse the graph starting from ``start_node_id``, executing logic nodes
    and stopping at DIALOGUE or END nodes.

    Returns:
        ID of the DIALOGUE/END node reached, or None if the flow is broken
        (missing node, missing connection, unknown kind, or iteration bound
        exceeded). The cases are indistinguishable here; use
        run_traversal() for diagnostics.

    Side effect: mutates ``memory`` for SET_VARIABLE nodes.
    """
    return run_traversal(graph, start_node_id, memory, max_iterations).node_id
