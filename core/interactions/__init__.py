"""
RC-Interactions - Branching dialogue flows for game NPCs.

A flow is a graph of typed nodes (start, dialogue, condition, set-variable,
event, end). The traversal engine walks the logic nodes against a game
memory and stops at the next line of dialogue to show.
"""

from interactions.graph import (
    Connection,
    FlowGraph,
    GameMemory,
    NodeType,
    evaluate_condition,
    find_next_node,
    run_traversal,
    traverse_logic,
)
from interactions.schemas import Project, load_export

__all__ = [
    "NodeType",
    "Connection",
    "FlowGraph",
    "GameMemory",
    "find_next_node",
    "evaluate_condition",
    "traverse_logic",
    "run_traversal",
    "Project",
    "load_export",
]
