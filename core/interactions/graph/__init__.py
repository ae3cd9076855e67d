"""Graph structures: Nodes, Connections, Conditions and Traversal."""

from interactions.graph.condition import ConditionOperator, evaluate_condition
from interactions.graph.edge import Connection, FlowGraph, find_next_node
from interactions.graph.executor import (
    DEFAULT_MAX_ITERATIONS,
    FailureReason,
    GameMemory,
    TraversalResult,
    TraversalStatus,
    run_traversal,
    traverse_logic,
)
from interactions.graph.node import (
    BaseNode,
    Choice,
    ConditionNode,
    DialogueNode,
    EndNode,
    EventNode,
    FlowNode,
    NodePosition,
    NodeType,
    SetVariableNode,
    StartNode,
    WorldCoords,
)

__all__ = [
    # Node
    "NodeType",
    "BaseNode",
    "FlowNode",
    "StartNode",
    "DialogueNode",
    "ConditionNode",
    "SetVariableNode",
    "EventNode",
    "EndNode",
    "Choice",
    "NodePosition",
    "WorldCoords",
    # Edge
    "Connection",
    "FlowGraph",
    "find_next_node",
    # Condition
    "ConditionOperator",
    "evaluate_condition",
    # Executor
    "GameMemory",
    "DEFAULT_MAX_ITERATIONS",
    "TraversalResult",
    "TraversalStatus",
    "FailureReason",
    "run_traversal",
    "traverse_logic",
]
