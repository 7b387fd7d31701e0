"""View-model layer for the interactive roadmap and its chat sidebar."""

from app.ui.chat import ChatMessage, ChatResponder, ChatSession, KeywordChatResponder
from app.ui.renderer import FlowRenderer
from app.ui.store import ProgressStats, RoadmapStore

__all__ = [
    "ChatMessage",
    "ChatResponder",
    "ChatSession",
    "FlowRenderer",
    "KeywordChatResponder",
    "ProgressStats",
    "RoadmapStore",
]
