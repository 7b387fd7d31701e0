"""Tests for the roadmap view store and chat replies."""

import asyncio

import pytest

from app.core.config import get_settings
from app.generator import create_custom_roadmap, templates
from app.ui import KeywordChatResponder, RoadmapStore
from app.ui.chat import ChatMessage


@pytest.fixture
def store() -> RoadmapStore:
    store = RoadmapStore(response_delay=0)
    store.set_current_roadmap(templates.instantiate("web-development"))
    return store


def _node(store: RoadmapStore, node_id: str = "html-basics"):
    return store.current_roadmap.node(node_id)


class TestSubscription:
    def test_every_action_notifies(self):
        store = RoadmapStore(response_delay=0)
        calls = []
        store.subscribe(lambda s: calls.append(s.is_loading))

        store.set_loading(True)
        store.set_error("boom")
        store.toggle_fullscreen()
        assert calls == [True, True, True]
        assert store.error == "boom"
        assert store.is_fullscreen is True

    def test_unsubscribe(self):
        store = RoadmapStore(response_delay=0)
        calls = []
        unsubscribe = store.subscribe(lambda s: calls.append(1))
        unsubscribe()
        unsubscribe()
        store.set_loading(True)
        assert calls == []


class TestNodeStatus:
    def test_update_replaces_roadmap(self, store: RoadmapStore):
        before = store.current_roadmap
        store.update_node_status("css-basics", "learning")

        assert store.current_roadmap is not before
        assert before.node("css-basics").data.status == "pending"
        assert _node(store, "css-basics").data.status == "learning"

    def test_selected_node_follows_update(self, store: RoadmapStore):
        store.select_node(_node(store))
        store.update_node_status("html-basics", "done")
        assert store.selected_node.data.status == "done"

    def test_unknown_node_is_ignored(self, store: RoadmapStore):
        before = store.current_roadmap
        store.update_node_status("nope", "done")
        assert store.current_roadmap is before

    def test_without_roadmap(self):
        store = RoadmapStore(response_delay=0)
        store.update_node_status("x", "done")
        assert store.current_roadmap is None

    def test_progress_stats(self, store: RoadmapStore):
        store.update_node_status("html-basics", "done")
        store.update_node_status("css-basics", "done")
        store.update_node_status("js-basics", "learning")
        stats = store.progress_stats()
        assert stats.completed == 2
        assert stats.in_progress == 1
        assert stats.total == 7
        assert stats.percentage == 29

    def test_progress_stats_empty(self):
        assert RoadmapStore().progress_stats().percentage == 0


class TestChat:
    def test_open_chat_creates_session_with_welcome(self, store: RoadmapStore):
        session = store.open_chat(_node(store))
        assert store.is_chat_open
        assert store.active_chat_session is session
        assert store.selected_node.id == "html-basics"
        assert session.node_title == "HTML Basics"
        assert len(session.messages) == 1
        welcome = session.messages[0]
        assert welcome.type == "assistant"
        assert welcome.content.startswith("Hi! I'm here to help you learn about **HTML Basics**.")
        assert "**Estimated Time**: 2-3 weeks" in welcome.content

    def test_reopen_reuses_session(self, store: RoadmapStore):
        first = store.open_chat(_node(store))
        store.close_chat()
        assert store.active_chat_session is None
        assert not store.is_chat_open

        second = store.open_chat(_node(store))
        assert second is first
        assert len(store.chat_sessions) == 1

    def test_one_session_per_node(self, store: RoadmapStore):
        store.open_chat(_node(store, "html-basics"))
        store.open_chat(_node(store, "css-basics"))
        assert [s.node_id for s in store.chat_sessions] == ["html-basics", "css-basics"]

    def test_welcome_without_estimate(self):
        graph = create_custom_roadmap("t", "", ["Vim"])
        graph.nodes[0].data.estimated_time = None
        store = RoadmapStore(response_delay=0)
        store.set_current_roadmap(graph)
        session = store.open_chat(graph.nodes[0])
        assert "**Estimated Time**: Not specified" in session.messages[0].content

    def test_send_message_replies(self, store: RoadmapStore):
        store.open_chat(_node(store))
        store.send_message("How do I start?")
        messages = store.active_chat_session.messages
        assert [m.type for m in messages] == ["assistant", "user", "assistant"]
        assert messages[2].content.startswith("Great question! To get started with **HTML Basics**")
        assert "[MDN HTML Guide]" in messages[2].content

    def test_send_without_session_is_noop(self, store: RoadmapStore):
        store.send_message("hello?")
        assert store.chat_sessions == []

    def test_message_ids_unique(self, store: RoadmapStore):
        store.open_chat(_node(store))
        store.send_message("a")
        store.send_message("b")
        ids = [m.id for m in store.active_chat_session.messages]
        assert len(ids) == len(set(ids))

    @pytest.mark.asyncio
    async def test_delayed_reply_lands_after_close(self):
        store = RoadmapStore(response_delay=0.01)
        store.set_current_roadmap(templates.instantiate("web-development"))
        session = store.open_chat(_node(store))
        store.send_message("what next?")
        assert len(session.messages) == 2

        store.close_chat()
        await asyncio.sleep(0.05)
        assert len(session.messages) == 3
        assert session.messages[2].content.startswith("Excellent progress on **HTML Basics**")

    def test_delay_defaults_to_setting(self, monkeypatch):
        monkeypatch.setattr(get_settings(), "CHAT_RESPONSE_DELAY_SECONDS", 2.5)
        assert RoadmapStore().response_delay == 2.5
        assert RoadmapStore(response_delay=0).response_delay == 0

    def test_assistant_message_without_target_is_dropped(self, store: RoadmapStore):
        store.add_assistant_message("orphan")
        assert store.chat_sessions == []


class TestKeywordResponder:
    @pytest.fixture
    def node(self):
        return templates.instantiate("web-development").node("js-basics")

    def _reply(self, text, node):
        history = [ChatMessage(id="m1", type="user", content=text)]
        return KeywordChatResponder().respond(history, node)

    def test_no_node(self):
        assert self._reply("hi", None) == KeywordChatResponder.NO_NODE_REPLY

    @pytest.mark.parametrize(
        "text, opening",
        [
            ("How does it work?", "Great question!"),
            ("Any resources?", "Here are all the learning resources"),
            ("This is hard", "Don't worry!"),
            ("I'm done, what next?", "Excellent progress"),
            ("Tell me more", "That's a great question about"),
        ],
    )
    def test_keyword_routing(self, node, text, opening):
        assert self._reply(text, node).startswith(opening)

    def test_resources_without_any(self, node):
        bare = node.model_copy(update={"data": node.data.model_copy(update={"resources": []})})
        reply = self._reply("where can I study this?", bare)
        assert reply.startswith("I don't have specific resources loaded for **JavaScript Fundamentals**")

    def test_difficulty_mentions_level(self, node):
        reply = self._reply("so difficult", node)
        assert "**intermediate**" in reply
        assert "**4-6 weeks**" in reply
