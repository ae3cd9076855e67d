"""
Interaction Bridge - Runs flows for the game host.

The host owns the players and the world; the bridge owns the flows. For each
active interaction it keeps the memory and the dialogue node the player is
looking at, and turns player input into client instructions:

    start_interaction(project)          → SHOW_DIALOGUE | CLOSE_DIALOGUE
    select_choice(project, node, choice) → SHOW_DIALOGUE | CLOSE_DIALOGUE
    cancel_interaction(project)          → INTERACTION_CANCELLED + CLOSE_DIALOGUE

Instructions are published on the EventBus; the host subscribes and forwards
them to the player's UI. Publishing happens after the bridge releases its
lock, so a handler may call straight back into the bridge.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field

from interactions.graph.executor import (
    DEFAULT_MAX_ITERATIONS,
    GameMemory,
    TraversalResult,
    run_traversal,
)
from interactions.graph.node import DialogueNode
from interactions.observability import set_trace_context
from interactions.runtime.event_bus import EventBus, EventType, InteractionEvent
from interactions.schemas.project import Project
from interactions.storage.project_store import ProjectNotFoundError, ProjectStore

logger = logging.getLogger(__name__)

DEFAULT_NPC_NAME = "NPC"


class RuntimeChoice(BaseModel):
    id: str
    text: str


class RuntimeDialogue(BaseModel):
    """What the player's UI needs to render one dialogue line."""

    project_id: str = Field(alias="projectId")
    node_id: str = Field(alias="nodeId")
    name: str = DEFAULT_NPC_NAME
    text: str = ""
    choices: list[RuntimeChoice] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_node(cls, project_id: str, node: DialogueNode) -> "RuntimeDialogue":
        return cls(
            project_id=project_id,
            node_id=node.id,
            name=node.data.speaker_name or DEFAULT_NPC_NAME,
            text=node.data.text or "",
            choices=[RuntimeChoice(id=c.id, text=c.text) for c in node.data.choices],
        )


@dataclass
class InteractionSession:
    """State of one running interaction."""

    session_id: str
    project_id: str
    node_id: str | None = None
    memory: GameMemory = field(default_factory=dict)


class InteractionBridge:
    """
    Host-side runtime for dialogue flows.

    Example:
        bridge = InteractionBridge(event_bus)
        bridge.load_projects(await store.list_projects())
        await bridge.start_interaction("proj_1718000000000")
        await bridge.select_choice("proj_1718000000000", "dialogue-1", "c-1")
    """

    def __init__(
        self,
        event_bus: EventBus | None = None,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ):
        self.event_bus = event_bus or EventBus()
        self.max_iterations = max_iterations
        self._projects: dict[str, Project] = {}
        self._sessions: dict[str, InteractionSession] = {}
        self._lock = asyncio.Lock()

    # === PROJECTS ===

    def load_projects(self, projects: list[Project]) -> None:
        """Replace the loaded projects. Running sessions keep their state."""
        self._projects = {p.id: p for p in projects}
        logger.info(f"Loaded {len(self._projects)} project(s)")

    async def load_from_store(self, store: ProjectStore) -> None:
        self.load_projects(await store.list_projects())

    def get_project(self, project_id: str) -> Project:
        project = self._projects.get(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def get_session(self, project_id: str) -> InteractionSession | None:
        return self._sessions.get(project_id)

    # === PLAYER INPUT ===

    async def start_interaction(
        self,
        project_id: str,
        memory: GameMemory | None = None,
    ) -> RuntimeDialogue | None:
        """
        Start (or restart) the interaction for a project at its START node.

        Args:
            project_id: Project to run
            memory: Initial memory; a fresh empty memory if omitted

        Returns:
            The first dialogue shown, or None if the flow closed immediately

        Raises:
            ProjectNotFoundError: If the project is not loaded
        """
        outbox: list[InteractionEvent] = []
        async with self._lock:
            project = self.get_project(project_id)
            session = InteractionSession(
                session_id=uuid.uuid4().hex,
                project_id=project_id,
                memory=dict(memory or {}),
            )
            self._sessions[project_id] = session
            set_trace_context(project_id=project_id, session_id=session.session_id)

            self._queue(outbox, EventType.INTERACTION_STARTED, session)

            start_node = project.data.find_start_node()
            if start_node is None:
                logger.warning(f"Project '{project_id}' has no START node")
                self._close(session, outbox)
                dialogue = None
            else:
                dialogue = self._advance(project, session, start_node.id, outbox)

        await self._flush(outbox)
        return dialogue

    async def select_choice(
        self,
        project_id: str,
        node_id: str,
        choice_id: str,
    ) -> RuntimeDialogue | None:
        """
        Apply a player's choice.

        Selections for a node other than the one on screen, and unknown
        choices, are ignored. A session whose project is no longer loaded is
        closed.

        Returns:
            The next dialogue shown, or None if the interaction closed or the
            selection was ignored
        """
        outbox: list[InteractionEvent] = []
        async with self._lock:
            dialogue = self._select(project_id, node_id, choice_id, outbox)
        await self._flush(outbox)
        return dialogue

    async def cancel_interaction(self, project_id: str) -> bool:
        """Close the interaction at the player's request. Returns False if none was active."""
        outbox: list[InteractionEvent] = []
        async with self._lock:
            session = self._sessions.get(project_id)
            if session is not None:
                self._queue(
                    outbox, EventType.INTERACTION_CANCELLED, session, node_id=session.node_id
                )
                self._close(session, outbox)
        await self._flush(outbox)
        return session is not None

    # === INTERNALS ===
    # Run under self._lock. Events are only queued here and published by
    # _flush() once the lock is released, so handlers may call back in.

    def _select(
        self,
        project_id: str,
        node_id: str,
        choice_id: str,
        outbox: list[InteractionEvent],
    ) -> RuntimeDialogue | None:
        session = self._sessions.get(project_id)
        if session is None:
            logger.warning(f"No active interaction for project '{project_id}'")
            return None
        if session.node_id != node_id:
            logger.info(f"Ignoring stale selection on '{node_id}' (showing '{session.node_id}')")
            return None

        project = self._projects.get(project_id)
        if project is None:
            logger.warning(f"Project '{project_id}' was unloaded, closing its interaction")
            self._close(session, outbox)
            return None

        node = project.data.get_node(node_id)
        choice = node.data.get_choice(choice_id) if isinstance(node, DialogueNode) else None
        if choice is None:
            logger.warning(f"Unknown choice '{choice_id}' on node '{node_id}'")
            return None

        self._queue(
            outbox,
            EventType.CHOICE_SELECTED,
            session,
            node_id=node_id,
            data={"choice_id": choice_id},
        )

        target_id = choice.next_node_id
        if not target_id:
            conn = project.data.find_connection(node_id, choice_id)
            target_id = conn.to_node_id if conn else None
        if not target_id:
            self._close(session, outbox)
            return None

        return self._advance(project, session, target_id, outbox)

    def _advance(
        self,
        project: Project,
        session: InteractionSession,
        node_id: str,
        outbox: list[InteractionEvent],
    ) -> RuntimeDialogue | None:
        before = dict(session.memory)
        result: TraversalResult = run_traversal(
            project.data, node_id, session.memory, self.max_iterations
        )

        changed = {
            k: v for k, v in session.memory.items() if k not in before or before[k] != v
        }
        if changed:
            self._queue(outbox, EventType.MEMORY_CHANGED, session, data={"changed": changed})

        if not result.success:
            self._queue(
                outbox,
                EventType.TRAVERSAL_FAILED,
                session,
                node_id=node_id,
                data={"reason": str(result.reason), "path": result.path},
            )
            self._close(session, outbox)
            return None

        node = project.data.get_node(result.node_id)
        if not isinstance(node, DialogueNode):
            # END node
            self._close(session, outbox)
            return None

        session.node_id = node.id
        dialogue = RuntimeDialogue.from_node(project.id, node)
        self._queue(
            outbox,
            EventType.SHOW_DIALOGUE,
            session,
            node_id=node.id,
            data=dialogue.model_dump(by_alias=True),
        )
        return dialogue

    def _close(self, session: InteractionSession, outbox: list[InteractionEvent]) -> None:
        if self._sessions.get(session.project_id) is session:
            del self._sessions[session.project_id]
        self._queue(outbox, EventType.CLOSE_DIALOGUE, session)
        logger.info(f"Interaction closed for project '{session.project_id}'")

    def _queue(
        self,
        outbox: list[InteractionEvent],
        event_type: EventType,
        session: InteractionSession,
        node_id: str | None = None,
        data: dict | None = None,
    ) -> None:
        outbox.append(
            InteractionEvent(
                type=event_type,
                project_id=session.project_id,
                node_id=node_id,
                session_id=session.session_id,
                data=data or {},
            )
        )

    async def _flush(self, outbox: list[InteractionEvent]) -> None:
        for event in outbox:
            await self.event_bus.publish(event)
