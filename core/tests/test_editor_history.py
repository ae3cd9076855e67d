"""Tests for HistoryStack."""

import pytest

from interactions.editor.history import HistoryStack
from interactions.graph.edge import FlowGraph
from interactions.graph.node import StartNode


def graph_with(*node_ids: str) -> FlowGraph:
    return FlowGraph(nodes=[StartNode(id=node_id) for node_id in node_ids])


def ids(graph: FlowGraph) -> list[str]:
    return [n.id for n in graph.nodes]


def test_empty_history():
    history = HistoryStack()

    assert not history.can_undo
    assert not history.can_redo
    assert history.undo(graph_with("a")) is None
    assert history.redo(graph_with("a")) is None


def test_limit_must_be_positive():
    with pytest.raises(ValueError):
        HistoryStack(limit=0)


def test_undo_returns_previous_snapshot():
    history = HistoryStack()
    history.push(graph_with("a"))

    previous = history.undo(graph_with("a", "b"))

    assert ids(previous) == ["a"]
    assert history.can_redo
    assert not history.can_undo


def test_redo_after_undo():
    history = HistoryStack()
    history.push(graph_with("a"))
    current = graph_with("a", "b")

    previous = history.undo(current)
    following = history.redo(previous)

    assert ids(following) == ["a", "b"]
    assert history.can_undo
    assert not history.can_redo


def test_push_clears_future():
    history = HistoryStack()
    history.push(graph_with("a"))
    history.undo(graph_with("a", "b"))
    assert history.can_redo

    history.push(graph_with("a"))
    assert not history.can_redo


def test_snapshots_are_copies():
    history = HistoryStack()
    graph = graph_with("a")
    history.push(graph)

    graph.nodes.append(StartNode(id="b"))

    assert ids(history.past[0]) == ["a"]


def test_limit_drops_oldest():
    history = HistoryStack(limit=3)
    for i in range(5):
        history.push(graph_with(f"n{i}"))

    assert [ids(g)[0] for g in history.past] == ["n2", "n3", "n4"]


def test_clear():
    history = HistoryStack()
    history.push(graph_with("a"))
    history.undo(graph_with("b"))

    history.clear()

    assert not history.can_undo
    assert not history.can_redo
