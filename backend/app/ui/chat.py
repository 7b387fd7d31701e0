"""Chat sidebar replies.

The sidebar never calls a model: ``KeywordChatResponder`` answers from
canned templates keyed on words in the user's message. Anything that
implements ``ChatResponder`` can replace it.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal, Protocol

from app.generator.models import GraphNode

MessageType = Literal["user", "assistant"]


@dataclass
class ChatMessage:
    id: str
    type: MessageType
    content: str
    node_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass
class ChatSession:
    id: str
    node_id: str
    node_title: str
    messages: list[ChatMessage] = field(default_factory=list)
    is_active: bool = True


class ChatResponder(Protocol):
    def respond(self, history: Sequence[ChatMessage], selected_node: GraphNode | None) -> str: ...


def welcome_message(node: GraphNode) -> str:
    data = node.data
    return (
        f"Hi! I'm here to help you learn about **{data.label}**.\n\n"
        f"{data.content}\n\n"
        "Here are some key points to get you started:\n"
        f"- **Description**: {data.description}\n"
        f"- **Difficulty**: {data.difficulty}\n"
        f"- **Estimated Time**: {data.estimated_time or 'Not specified'}\n\n"
        "Feel free to ask me any questions about this topic!"
    )


class KeywordChatResponder:
    """Template replies chosen by keywords in the latest user message."""

    NO_NODE_REPLY = (
        "I'm here to help! Please select a topic from the roadmap to get specific guidance."
    )

    def respond(self, history: Sequence[ChatMessage], selected_node: GraphNode | None) -> str:
        if selected_node is None:
            return self.NO_NODE_REPLY

        last = next((m.content for m in reversed(history) if m.type == "user"), "")
        text = last.lower()

        if any(k in text for k in ("how", "start", "begin")):
            return self._getting_started(selected_node)
        if any(k in text for k in ("resource", "learn", "study")):
            return self._resources(selected_node)
        if any(k in text for k in ("difficult", "hard", "challenge")):
            return self._difficulty(selected_node)
        if any(k in text for k in ("next", "after", "done")):
            return self._next_steps(selected_node)
        return self._generic(selected_node)

    def _getting_started(self, node: GraphNode) -> str:
        data = node.data
        if data.resources:
            picks = "\n".join(f"- [{r.title}]({r.url}) ({r.type})" for r in data.resources[:2])
            resources = f"Here are the top resources I recommend:\n{picks}"
        else:
            resources = "Let me know if you need specific resource recommendations!"
        return (
            f"Great question! To get started with **{data.label}**, I recommend:\n\n"
            "1. **Begin with the basics** - Make sure you understand the fundamental concepts\n"
            "2. **Practice hands-on** - Theory is important, but practical experience is key\n"
            "3. **Use the resources** - I've included some great learning materials for this topic\n\n"
            f"{resources}\n\n"
            "What specific aspect would you like to focus on first?"
        )

    def _resources(self, node: GraphNode) -> str:
        data = node.data
        if not data.resources:
            return (
                f"I don't have specific resources loaded for **{data.label}** right now, "
                "but I can suggest some general approaches:\n\n"
                "1. **Official Documentation** - Always start with official docs\n"
                "2. **Interactive Tutorials** - Hands-on learning is very effective\n"
                "3. **Video Courses** - Great for visual learners\n"
                "4. **Practice Projects** - Build something real!\n\n"
                "Would you like me to recommend some specific resources for this topic?"
            )
        entries = "\n".join(
            f"**{r.title}** - {r.type} {'(Free)' if r.free else '(Paid)'}\n"
            f"  - Difficulty: {r.difficulty}\n"
            f"  - Link: [{r.url}]({r.url})\n"
            for r in data.resources
        )
        return (
            f"Here are all the learning resources for **{data.label}**:\n\n"
            f"{entries}\n"
            "Which type of resource do you prefer to start with?"
        )

    def _difficulty(self, node: GraphNode) -> str:
        data = node.data
        return (
            f"Don't worry! **{data.label}** is rated as **{data.difficulty}** level, "
            "and with the right approach, you can master it.\n\n"
            "Here are some tips to make it easier:\n"
            "- **Break it down** - Focus on one concept at a time\n"
            "- **Practice regularly** - Consistency beats intensity\n"
            "- **Join communities** - Learning with others helps a lot\n"
            "- **Don't rush** - Take your time to really understand each concept\n\n"
            f"The estimated time for this topic is **{data.estimated_time or '2-3 weeks'}**. "
            "Remember, everyone learns at their own pace!\n\n"
            "What specific part are you finding most challenging?"
        )

    def _next_steps(self, node: GraphNode) -> str:
        return (
            f"Excellent progress on **{node.data.label}**!\n\n"
            "Once you've mastered this topic, you can move on to the next steps in your "
            "roadmap. Based on the learning path, the connected topics will become available.\n\n"
            "Don't forget to:\n"
            "- Mark this topic as complete when you're confident\n"
            "- Review the key concepts periodically\n"
            "- Apply what you've learned in a practical project\n\n"
            "Is there anything specific about this topic you'd like to review before moving on?"
        )

    def _generic(self, node: GraphNode) -> str:
        data = node.data
        return (
            f"That's a great question about **{data.label}**!\n\n"
            f"{data.content}\n\n"
            f"This topic is important because it {data.description.lower()}.\n\n"
            "Feel free to ask me more specific questions about:\n"
            "- Key concepts and fundamentals\n"
            "- Best practices and common patterns\n"
            "- Learning resources and next steps\n"
            "- Common challenges and how to overcome them\n\n"
            "What would you like to explore further?"
        )
