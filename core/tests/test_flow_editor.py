"""
Tests for FlowEditor graph operations.

Covers node and connection editing, the one-connection-per-port rule,
dialogue choice bookkeeping and undo/redo of every edit.
"""

import pytest

from interactions.editor import ChoiceNotFoundError, FlowEditor, NodeNotFoundError
from interactions.graph.edge import FlowGraph
from interactions.graph.executor import traverse_logic
from interactions.graph.node import (
    ConditionNode,
    DialogueNode,
    NodePosition,
    NodeType,
    StartNode,
)


@pytest.fixture
def editor() -> FlowEditor:
    return FlowEditor(FlowGraph(nodes=[StartNode(id="start")]))


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


class TestNodes:
    def test_add_dialogue_node_defaults(self, editor):
        node = editor.add_node(NodeType.DIALOGUE, NodePosition(x=10, y=20))

        assert isinstance(node, DialogueNode)
        assert node.id.startswith("dialogue-")
        assert node.position.x == 10
        assert node.data.speaker_name == "Entity"
        assert node.data.text == "..."
        assert len(node.data.choices) == 1
        assert node.data.choices[0].text == "Next"

    def test_add_condition_node_defaults(self, editor):
        node = editor.add_node("CONDITION")

        assert isinstance(node, ConditionNode)
        assert node.data.variable_name == "var"
        assert node.data.operator == "=="
        assert node.data.compare_value == "true"

    def test_added_ids_are_unique(self, editor):
        first = editor.add_node(NodeType.EVENT)
        second = editor.add_node(NodeType.EVENT)

        assert first.id != second.id

    def test_unknown_kind_raises(self, editor):
        with pytest.raises(ValueError):
            editor.add_node("TELEPORT")

    def test_delete_node_removes_its_connections(self, editor):
        line = editor.add_node(NodeType.DIALOGUE)
        end = editor.add_node(NodeType.END)
        editor.connect("start", "main", line.id)
        editor.connect(line.id, line.data.choices[0].id, end.id)

        editor.delete_node(line.id)

        assert editor.graph.get_node(line.id) is None
        assert editor.graph.connections == []

    def test_delete_missing_node_raises(self, editor):
        with pytest.raises(NodeNotFoundError):
            editor.delete_node("ghost")

    def test_move_node(self, editor):
        editor.move_node("start", 300, 400)

        position = editor.graph.get_node("start").position
        assert (position.x, position.y) == (300, 400)

    def test_update_node_data(self, editor):
        line = editor.add_node(NodeType.DIALOGUE)

        editor.update_node_data(line.id, text="Hello there", speaker_name="Marcus")

        node = editor.graph.get_node(line.id)
        assert node.data.text == "Hello there"
        assert node.data.speaker_name == "Marcus"
        assert len(node.data.choices) == 1

    def test_alias_update_survives_later_name_update(self, editor):
        cond = editor.add_node(NodeType.CONDITION)

        editor.update_node_data(cond.id, variableName="level", conditionOperator=">=")
        editor.update_node_data(cond.id, compare_value="5")

        data = editor.graph.get_node(cond.id).data
        assert data.variable_name == "level"
        assert data.operator == ">="
        assert data.compare_value == "5"

        dumped = data.model_dump(by_alias=True)
        assert "variable_name" not in dumped
        assert "operator" not in dumped
        assert dumped["variableName"] == "level"


# ---------------------------------------------------------------------------
# Connections
# ---------------------------------------------------------------------------


class TestConnections:
    def test_connect(self, editor):
        line = editor.add_node(NodeType.DIALOGUE)

        conn = editor.connect("start", "main", line.id)

        assert conn is not None
        assert editor.graph.find_next_node("start", "main").id == line.id

    def test_connect_replaces_existing_port_link(self, editor):
        first = editor.add_node(NodeType.DIALOGUE)
        second = editor.add_node(NodeType.DIALOGUE)

        editor.connect("start", "main", first.id)
        editor.connect("start", "main", second.id)

        outgoing = editor.graph.get_outgoing_connections("start")
        assert len(outgoing) == 1
        assert outgoing[0].to_node_id == second.id

    def test_condition_ports_are_independent(self, editor):
        cond = editor.add_node(NodeType.CONDITION)
        yes = editor.add_node(NodeType.DIALOGUE)
        no = editor.add_node(NodeType.DIALOGUE)

        editor.connect(cond.id, "true", yes.id)
        editor.connect(cond.id, "false", no.id)

        assert len(editor.graph.get_outgoing_connections(cond.id)) == 2

    def test_self_link_is_ignored(self, editor):
        assert editor.connect("start", "main", "start") is None
        assert editor.graph.connections == []
        assert not editor.history.can_undo

    def test_connect_missing_node_raises(self, editor):
        with pytest.raises(NodeNotFoundError):
            editor.connect("start", "main", "ghost")

    def test_connect_choice_updates_next_node_id(self, editor):
        line = editor.add_node(NodeType.DIALOGUE)
        end = editor.add_node(NodeType.END)
        choice_id = line.data.choices[0].id

        editor.connect(line.id, choice_id, end.id)

        assert editor.graph.get_node(line.id).data.get_choice(choice_id).next_node_id == end.id
        assert editor.graph.validate() == []

    def test_delete_connection_clears_choice(self, editor):
        line = editor.add_node(NodeType.DIALOGUE)
        end = editor.add_node(NodeType.END)
        choice_id = line.data.choices[0].id
        conn = editor.connect(line.id, choice_id, end.id)

        assert editor.delete_connection(conn.id) is True

        assert editor.graph.get_node(line.id).data.get_choice(choice_id).next_node_id is None
        assert editor.delete_connection(conn.id) is False


# ---------------------------------------------------------------------------
# Choices
# ---------------------------------------------------------------------------


class TestChoices:
    def test_add_choice(self, editor):
        line = editor.add_node(NodeType.DIALOGUE)

        choice = editor.add_choice(line.id, "Ask about the job")

        assert choice.text == "Ask about the job"
        assert [c.id for c in line.data.choices][-1] == choice.id
        assert len({c.id for c in line.data.choices}) == 2

    def test_add_choice_on_non_dialogue_raises(self, editor):
        with pytest.raises(TypeError):
            editor.add_choice("start")

    def test_remove_choice_drops_its_connection(self, editor):
        line = editor.add_node(NodeType.DIALOGUE)
        end = editor.add_node(NodeType.END)
        choice_id = line.data.choices[0].id
        editor.connect(line.id, choice_id, end.id)

        editor.remove_choice(line.id, choice_id)

        assert line.data.choices == []
        assert editor.graph.get_outgoing_connections(line.id) == []

    def test_remove_unknown_choice_raises(self, editor):
        line = editor.add_node(NodeType.DIALOGUE)

        with pytest.raises(ChoiceNotFoundError):
            editor.remove_choice(line.id, "nope")


# ---------------------------------------------------------------------------
# Undo / redo
# ---------------------------------------------------------------------------


class TestUndoRedo:
    def test_each_edit_is_one_undo_step(self, editor):
        line = editor.add_node(NodeType.DIALOGUE)
        editor.connect("start", "main", line.id)

        assert editor.undo()
        assert editor.graph.connections == []
        assert editor.graph.get_node(line.id) is not None

        assert editor.undo()
        assert editor.graph.get_node(line.id) is None

        assert not editor.undo()

    def test_redo_restores_edit(self, editor):
        line = editor.add_node(NodeType.DIALOGUE)
        editor.connect("start", "main", line.id)
        editor.undo()

        assert editor.redo()
        assert editor.graph.find_next_node("start", "main").id == line.id
        assert not editor.redo()

    def test_new_edit_clears_redo(self, editor):
        editor.add_node(NodeType.END)
        editor.undo()
        editor.add_node(NodeType.EVENT)

        assert not editor.redo()

    def test_undo_of_data_update(self, editor):
        editor.update_node_data("start", speaker_name="Marcus")
        editor.undo()

        assert editor.graph.get_node("start").data.speaker_name is None

    def test_history_limit(self):
        editor = FlowEditor(FlowGraph(nodes=[StartNode(id="start")]), history_limit=2)
        for x in range(5):
            editor.move_node("start", x, 0)

        assert editor.undo()
        assert editor.undo()
        assert not editor.undo()
        assert editor.graph.get_node("start").position.x == 2


def test_built_flow_is_traversable(editor):
    cond = editor.add_node(NodeType.CONDITION)
    editor.update_node_data(cond.id, variable_name="level", operator=">=", compare_value="10")
    yes = editor.add_node(NodeType.DIALOGUE)
    no = editor.add_node(NodeType.DIALOGUE)
    editor.connect("start", "main", cond.id)
    editor.connect(cond.id, "true", yes.id)
    editor.connect(cond.id, "false", no.id)

    assert traverse_logic(editor.graph, "start", {"level": "12"}) == yes.id
    assert traverse_logic(editor.graph, "start", {"level": "3"}) == no.id
