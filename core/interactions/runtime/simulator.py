"""
Game Simulator - Play a flow inside the editor.

A session:
1. Starts at the graph's START node with a fresh memory
2. Runs logic nodes until a DIALOGUE line is reached
3. Waits for the player to pick a choice, then runs again from its target
4. Ends on an END node, on any broken path, or when cancelled
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime

from interactions.config import DEFAULT_INITIAL_MEMORY
from interactions.graph.edge import FlowGraph
from interactions.graph.executor import DEFAULT_MAX_ITERATIONS, GameMemory, run_traversal
from interactions.graph.node import BaseNode, Choice, DialogueNode, NodeType
from interactions.observability import set_trace_context

logger = logging.getLogger(__name__)

SYSTEM_SPEAKER = "System"


class SimulationError(RuntimeError):
    """Raised when a simulation cannot start."""


@dataclass
class TranscriptEntry:
    node_id: str
    speaker: str
    text: str
    choice: str | None = None  # Text of the choice the player picked here


class GameSimulator:
    """
    Interactive play-through of a single flow graph.

    Example:
        sim = GameSimulator(project.data, initial_memory={"honor_level": 55})
        sim.start()
        while sim.is_active:
            print(sim.current_node.data.text)
            sim.choose(0)
    """

    def __init__(
        self,
        graph: FlowGraph,
        initial_memory: GameMemory | None = None,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        project_id: str = "",
    ):
        self.graph = graph
        if initial_memory is None:
            initial_memory = DEFAULT_INITIAL_MEMORY
        self.initial_memory: GameMemory = dict(initial_memory)
        self.max_iterations = max_iterations
        self.project_id = project_id

        self.memory: GameMemory = {}
        self.session_id: str | None = None
        self.current_node_id: str | None = None
        self.is_active = False
        self.transcript: list[TranscriptEntry] = []

    # === STATE ===

    @property
    def current_node(self) -> BaseNode | None:
        if self.current_node_id is None:
            return None
        return self.graph.get_node(self.current_node_id)

    @property
    def choices(self) -> list[Choice]:
        node = self.current_node
        if isinstance(node, DialogueNode):
            return list(node.data.choices)
        return []

    # === LIFECYCLE ===

    def start(self) -> BaseNode | None:
        """
        Begin a new session at the START node.

        Returns:
            The first dialogue node shown, or None if the session ended at once

        Raises:
            SimulationError: If the graph has no START node
        """
        start_node = self.graph.find_start_node()
        if start_node is None:
            raise SimulationError("no START node found")

        self.memory = dict(self.initial_memory)
        self.session_id = f"sim_{datetime.now().strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}"
        self.current_node_id = None
        self.transcript = []
        self.is_active = True

        set_trace_context(project_id=self.project_id, session_id=self.session_id)
        logger.info(f"Simulation started at '{start_node.id}'")

        return self._advance(start_node.id)

    def choose(self, selection: int | str) -> BaseNode | None:
        """
        Pick a choice on the current dialogue node.

        Args:
            selection: 0-based choice index, or a choice id

        Returns:
            The next dialogue node, or None if the session ended or the
            selection was ignored
        """
        if not self.is_active:
            return None

        choice = self._resolve_choice(selection)
        if choice is None:
            logger.debug(f"Ignoring unknown choice {selection!r}")
            return None

        target_id = choice.next_node_id
        if not target_id and self.current_node_id:
            conn = self.graph.find_connection(self.current_node_id, choice.id)
            target_id = conn.to_node_id if conn else None
        if not target_id:
            logger.debug(f"Choice '{choice.id}' leads nowhere, ignoring")
            return None

        if self.transcript:
            self.transcript[-1].choice = choice.text
        return self._advance(target_id)

    def cancel(self) -> None:
        if self.is_active:
            logger.info("Simulation cancelled")
        self._end()

    # === INTERNALS ===

    def _resolve_choice(self, selection: int | str) -> Choice | None:
        choices = self.choices
        if isinstance(selection, int):
            if 0 <= selection < len(choices):
                return choices[selection]
            return None
        for choice in choices:
            if choice.id == selection:
                return choice
        return None

    def _advance(self, node_id: str) -> BaseNode | None:
        result = run_traversal(self.graph, node_id, self.memory, self.max_iterations)

        if not result.success:
            logger.info(f"Simulation ended: no path ({result.reason})")
            self._end()
            return None

        node = self.graph.get_node(result.node_id)
        if node is None or node.type == NodeType.END:
            logger.info("Simulation reached END")
            self._end()
            return None

        self.current_node_id = node.id
        if isinstance(node, DialogueNode):
            self.transcript.append(
                TranscriptEntry(
                    node_id=node.id,
                    speaker=node.data.speaker_name or SYSTEM_SPEAKER,
                    text=node.data.text or "",
                )
            )
        return node

    def _end(self) -> None:
        self.is_active = False
        self.current_node_id = None
