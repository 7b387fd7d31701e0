"""Observable state for the roadmap viewer and its chat sidebar."""

import asyncio
import itertools
from collections.abc import Callable
from dataclasses import dataclass

from app.core.config import get_settings
from app.core.logging import get_logger
from app.generator.models import GraphNode, NodeStatus, RoadmapGraph
from app.ui.chat import (
    ChatMessage,
    ChatResponder,
    ChatSession,
    KeywordChatResponder,
    welcome_message,
)

logger = get_logger(__name__)

Listener = Callable[["RoadmapStore"], None]


@dataclass(frozen=True)
class ProgressStats:
    completed: int
    in_progress: int
    total: int
    percentage: int


class RoadmapStore:
    """Single source of truth for the viewer.

    Every action mutates state and then calls the subscribed listeners
    synchronously. Roadmap updates replace the graph object instead of
    editing it, so a listener can compare the previous and current graph.
    """

    def __init__(
        self,
        responder: ChatResponder | None = None,
        response_delay: float | None = None,
    ) -> None:
        self.responder: ChatResponder = responder or KeywordChatResponder()
        if response_delay is None:
            response_delay = get_settings().CHAT_RESPONSE_DELAY_SECONDS
        self.response_delay = response_delay

        self.current_roadmap: RoadmapGraph | None = None
        self.is_loading = False
        self.error: str | None = None
        self.selected_node: GraphNode | None = None
        self.chat_sessions: list[ChatSession] = []
        self.is_chat_open = False
        self.is_fullscreen = False

        self._active_session_id: str | None = None
        self._listeners: list[Listener] = []
        self._ids = itertools.count(1)

    # ========================================================================
    # Subscription
    # ========================================================================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    # ========================================================================
    # Basic setters
    # ========================================================================

    @property
    def active_chat_session(self) -> ChatSession | None:
        if self._active_session_id is None:
            return None
        return self._session_by_id(self._active_session_id)

    def set_current_roadmap(self, roadmap: RoadmapGraph | None) -> None:
        self.current_roadmap = roadmap
        self._notify()

    def set_loading(self, loading: bool) -> None:
        self.is_loading = loading
        self._notify()

    def set_error(self, error: str | None) -> None:
        self.error = error
        self._notify()

    def toggle_fullscreen(self) -> None:
        self.is_fullscreen = not self.is_fullscreen
        self._notify()

    # ========================================================================
    # Nodes
    # ========================================================================

    def select_node(self, node: GraphNode | None) -> None:
        self.selected_node = node
        self._notify()

    def update_node_status(self, node_id: str, status: NodeStatus) -> None:
        roadmap = self.current_roadmap
        if roadmap is None or roadmap.node(node_id) is None:
            return

        nodes = [
            n.model_copy(update={"data": n.data.model_copy(update={"status": status})})
            if n.id == node_id
            else n
            for n in roadmap.nodes
        ]
        self.current_roadmap = roadmap.model_copy(update={"nodes": nodes})
        if self.selected_node is not None and self.selected_node.id == node_id:
            self.selected_node = self.current_roadmap.node(node_id)
        self._notify()

    def progress_stats(self) -> ProgressStats:
        if self.current_roadmap is None:
            return ProgressStats(completed=0, in_progress=0, total=0, percentage=0)

        nodes = self.current_roadmap.nodes
        total = len(nodes)
        completed = sum(1 for n in nodes if n.data.status == "done")
        in_progress = sum(1 for n in nodes if n.data.status == "learning")
        percentage = int(100 * completed / total + 0.5) if total else 0
        return ProgressStats(
            completed=completed, in_progress=in_progress, total=total, percentage=percentage
        )

    # ========================================================================
    # Chat
    # ========================================================================

    def _session_by_id(self, session_id: str) -> ChatSession | None:
        return next((s for s in self.chat_sessions if s.id == session_id), None)

    def _session_for_node(self, node_id: str) -> ChatSession | None:
        return next((s for s in self.chat_sessions if s.node_id == node_id), None)

    def open_chat(self, node: GraphNode) -> ChatSession:
        """Open the sidebar for ``node``, reusing its session if one exists."""
        session = self._session_for_node(node.id)
        if session is None:
            session = ChatSession(
                id=self._next_id(f"chat-{node.id}"),
                node_id=node.id,
                node_title=node.data.label,
                messages=[
                    ChatMessage(
                        id=self._next_id("msg"),
                        type="assistant",
                        content=welcome_message(node),
                        node_id=node.id,
                    )
                ],
            )
            self.chat_sessions.append(session)

        self._active_session_id = session.id
        self.selected_node = node
        self.is_chat_open = True
        self._notify()
        return session

    def close_chat(self) -> None:
        self.is_chat_open = False
        self._active_session_id = None
        self._notify()

    def send_message(self, content: str) -> None:
        """Append a user message and schedule the assistant reply.

        The reply is produced from the node selected at send time and lands
        in that node's session even if the sidebar has been closed since.
        """
        session = self.active_chat_session
        if session is None:
            return

        session.messages.append(
            ChatMessage(
                id=self._next_id("msg"),
                type="user",
                content=content,
                node_id=session.node_id,
            )
        )
        self._notify()

        node = self.selected_node
        history = list(session.messages)
        node_id = session.node_id

        def reply() -> None:
            self.add_assistant_message(self.responder.respond(history, node), node_id)

        if self.response_delay <= 0:
            reply()
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            reply()
            return
        loop.call_later(self.response_delay, reply)

    def add_assistant_message(self, content: str, node_id: str | None = None) -> None:
        session = self._session_for_node(node_id) if node_id else self.active_chat_session
        if session is None:
            logger.debug("Dropping assistant message without a session", node_id=node_id)
            return

        session.messages.append(
            ChatMessage(
                id=self._next_id("msg"),
                type="assistant",
                content=content,
                node_id=node_id,
            )
        )
        self._notify()
