"""
Node Protocol - The typed vertices of a flow graph.

Every node carries:
1. A unique id
2. A kind (START, DIALOGUE, CONDITION, SET_VARIABLE, EVENT, END)
3. A canvas position (editor only, never read during traversal)
4. A payload whose shape depends on the kind

Node kinds fall into two groups:
- Presentational: DIALOGUE and END. Traversal stops here.
- Logic: START, CONDITION, SET_VARIABLE and EVENT. Executed automatically
  and passed through.

Nodes are a closed tagged union discriminated on ``type``. A document with an
unknown kind fails validation when it is loaded, so the executor only ever
sees the six kinds below.
"""

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class NodeType(StrEnum):
    """Kinds of nodes a flow graph can contain."""

    START = "START"
    DIALOGUE = "DIALOGUE"
    CONDITION = "CONDITION"
    SET_VARIABLE = "SET_VARIABLE"
    EVENT = "EVENT"
    END = "END"


PRESENTATIONAL_TYPES = frozenset({NodeType.DIALOGUE, NodeType.END})

MAIN_PORT = "main"
TRUE_PORT = "true"
FALSE_PORT = "false"


class _Model(BaseModel):
    """Base for document models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class NodePosition(_Model):
    """Canvas position of a node."""

    x: float = 0
    y: float = 0


class WorldCoords(_Model):
    """World spawn coordinates for the NPC attached to a START node."""

    x: float
    y: float
    z: float
    w: float | None = None


class Choice(_Model):
    """A player option on a dialogue node. The id doubles as the port name."""

    id: str
    text: str = ""
    next_node_id: str | None = Field(default=None, alias="nextNodeId")


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


class StartData(_Model):
    coords: WorldCoords | None = None
    model: str | None = None
    speaker_name: str | None = Field(default=None, alias="npcName")


class DialogueData(_Model):
    speaker_name: str | None = Field(default=None, alias="npcName")
    text: str | None = None
    choices: list[Choice] = Field(default_factory=list)

    def get_choice(self, choice_id: str) -> Choice | None:
        for choice in self.choices:
            if choice.id == choice_id:
                return choice
        return None


class ConditionData(_Model):
    variable_name: str | None = Field(default=None, alias="variableName")
    # Kept as a free string so imported documents with an unknown operator
    # still load; evaluation treats anything unrecognized as false.
    operator: str | None = Field(default=None, alias="conditionOperator")
    compare_value: str | None = Field(default=None, alias="variableValue")


class SetVariableData(_Model):
    variable_name: str | None = Field(default=None, alias="variableName")
    value: str | None = Field(default=None, alias="variableValue")


class EventData(_Model):
    event_name: str | None = Field(default=None, alias="eventName")
    event_payload: str | None = Field(default=None, alias="eventPayload")


class EndData(_Model):
    pass


# ---------------------------------------------------------------------------
# Node variants
# ---------------------------------------------------------------------------


class BaseNode(_Model):
    id: str
    position: NodePosition = Field(default_factory=NodePosition)

    @property
    def is_presentational(self) -> bool:
        return self.type in PRESENTATIONAL_TYPES  # type: ignore[attr-defined]


class StartNode(BaseNode):
    type: Literal["START"] = "START"
    data: StartData = Field(default_factory=StartData)


class DialogueNode(BaseNode):
    type: Literal["DIALOGUE"] = "DIALOGUE"
    data: DialogueData = Field(default_factory=DialogueData)


class ConditionNode(BaseNode):
    type: Literal["CONDITION"] = "CONDITION"
    data: ConditionData = Field(default_factory=ConditionData)


class SetVariableNode(BaseNode):
    type: Literal["SET_VARIABLE"] = "SET_VARIABLE"
    data: SetVariableData = Field(default_factory=SetVariableData)


class EventNode(BaseNode):
    type: Literal["EVENT"] = "EVENT"
    data: EventData = Field(default_factory=EventData)


class EndNode(BaseNode):
    type: Literal["END"] = "END"
    data: EndData = Field(default_factory=EndData)


FlowNode = Annotated[
    StartNode | DialogueNode | ConditionNode | SetVariableNode | EventNode | EndNode,
    Field(discriminator="type"),
]

NODE_CLASSES: dict[NodeType, type[BaseNode]] = {
    NodeType.START: StartNode,
    NodeType.DIALOGUE: DialogueNode,
    NodeType.CONDITION: ConditionNode,
    NodeType.SET_VARIABLE: SetVariableNode,
    NodeType.EVENT: EventNode,
    NodeType.END: EndNode,
}
