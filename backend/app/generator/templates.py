"""Bundled roadmap templates.

Templates are static graphs; instantiating one needs no external service.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from app.core.logging import get_logger
from app.generator.models import (
    GenerateRequest,
    GraphEdge,
    GraphMetadata,
    GraphNode,
    NodeData,
    Position,
    ResourceLink,
    RoadmapGraph,
    TemplateSummary,
)

logger = get_logger(__name__)


def _node(
    node_id: str,
    label: str,
    x: float,
    y: float,
    description: str,
    content: str,
    resources: list[tuple[str, str, str, str, str]],
    difficulty: str,
    estimated_time: str,
    background: str,
    border: str,
    node_type: str = "topic",
) -> GraphNode:
    return GraphNode(
        id=node_id,
        type=node_type,
        position=Position(x=x, y=y),
        data=NodeData(
            label=label,
            description=description,
            content=content,
            resources=[
                ResourceLink(id=rid, title=title, url=url, type=rtype, free=True, difficulty=rdiff)
                for rid, title, url, rtype, rdiff in resources
            ],
            status="pending",
            difficulty=difficulty,
            estimated_time=estimated_time,
        ),
        style={"backgroundColor": background, "borderColor": border},
    )


def _chain(*pairs: tuple[str, str]) -> list[GraphEdge]:
    return [
        GraphEdge(id=f"e{i + 1}", source=source, target=target, type="smoothstep")
        for i, (source, target) in enumerate(pairs)
    ]


def _metadata(tags: list[str]) -> GraphMetadata:
    now = datetime.now(UTC)
    return GraphMetadata(
        author="Roadmap Generator",
        version="1.0.0",
        created_at=now,
        updated_at=now,
        tags=tags,
        generated_by="template",
    )


def build_web_development() -> RoadmapGraph:
    nodes = [
        _node(
            "html-basics", "HTML Basics", 250, 50,
            "Learn the fundamentals of HTML markup language",
            "HTML (HyperText Markup Language) is the standard markup language for creating "
            "web pages. It describes the structure of web content using elements and tags.",
            [
                ("html-1", "MDN HTML Guide", "https://developer.mozilla.org/en-US/docs/Web/HTML", "documentation", "beginner"),
                ("html-2", "HTML Crash Course", "https://www.youtube.com/watch?v=UB1O30fR-EE", "video", "beginner"),
            ],
            "beginner", "2-3 weeks", "#e3f2fd", "#1976d2",
        ),
        _node(
            "css-basics", "CSS Basics", 250, 200,
            "Master styling with Cascading Style Sheets",
            "CSS (Cascading Style Sheets) is used to style and layout web pages. "
            "Learn selectors, properties, flexbox, and grid.",
            [
                ("css-1", "CSS Complete Guide", "https://developer.mozilla.org/en-US/docs/Web/CSS", "documentation", "beginner"),
                ("css-2", "Flexbox Froggy", "https://flexboxfroggy.com/", "tutorial", "beginner"),
            ],
            "beginner", "3-4 weeks", "#e8f5e8", "#388e3c",
        ),
        _node(
            "js-basics", "JavaScript Fundamentals", 250, 350,
            "Learn programming with JavaScript",
            "JavaScript is a programming language that enables interactive web pages. "
            "Learn variables, functions, DOM manipulation, and ES6+ features.",
            [
                ("js-1", "JavaScript.info", "https://javascript.info/", "tutorial", "beginner"),
                ("js-2", "Eloquent JavaScript", "https://eloquentjavascript.net/", "book", "intermediate"),
            ],
            "intermediate", "4-6 weeks", "#fff3e0", "#f57c00",
        ),
        _node(
            "react-basics", "React Fundamentals", 100, 500,
            "Build dynamic UIs with React",
            "React is a JavaScript library for building user interfaces. "
            "Learn components, state, props, and hooks.",
            [
                ("react-1", "React Official Tutorial", "https://react.dev/learn", "tutorial", "intermediate"),
                ("react-2", "React Crash Course", "https://www.youtube.com/watch?v=w7ejDZ8SWv8", "video", "intermediate"),
            ],
            "intermediate", "4-5 weeks", "#e3f2fd", "#0277bd",
        ),
        _node(
            "backend-basics", "Backend Development", 400, 500,
            "Server-side programming with Node.js",
            "Learn server-side development with Node.js, Express.js, and database integration.",
            [
                ("node-1", "Node.js Guide", "https://nodejs.org/en/docs/", "documentation", "intermediate"),
                ("express-1", "Express.js Tutorial", "https://expressjs.com/", "tutorial", "intermediate"),
            ],
            "intermediate", "5-6 weeks", "#e8f5e8", "#388e3c",
        ),
        _node(
            "database", "Database Management", 250, 650,
            "Learn SQL and NoSQL databases",
            "Understand database design, SQL queries, and popular databases like "
            "PostgreSQL and MongoDB.",
            [
                ("sql-1", "SQL Tutorial", "https://www.w3schools.com/sql/", "tutorial", "beginner"),
                ("mongo-1", "MongoDB University", "https://university.mongodb.com/", "course", "intermediate"),
            ],
            "intermediate", "3-4 weeks", "#fff3e0", "#f57c00",
        ),
        _node(
            "fullstack-project", "Full-Stack Project", 250, 800,
            "Build a complete web application",
            "Create a full-stack web application combining frontend and backend technologies.",
            [
                ("project-1", "Project Ideas", "https://github.com/florinpop17/app-ideas", "article", "intermediate"),
            ],
            "advanced", "4-8 weeks", "#f3e5f5", "#7b1fa2",
            node_type="milestone",
        ),
    ]
    edges = _chain(
        ("html-basics", "css-basics"),
        ("css-basics", "js-basics"),
        ("js-basics", "react-basics"),
        ("js-basics", "backend-basics"),
        ("react-basics", "database"),
        ("backend-basics", "database"),
        ("database", "fullstack-project"),
    )
    return RoadmapGraph(
        id="web-dev-roadmap",
        title="Web Development Roadmap",
        description="A comprehensive guide to becoming a full-stack web developer",
        category="Web Development",
        estimated_duration="6-12 months",
        nodes=nodes,
        edges=edges,
        metadata=_metadata(["web-development", "javascript", "react", "node.js", "full-stack"]),
    )


def build_data_science() -> RoadmapGraph:
    nodes = [
        _node(
            "python-basics", "Python Programming", 250, 50,
            "Learn Python fundamentals for data science",
            "Python is the most popular language for data science. "
            "Master syntax, data structures, and libraries.",
            [
                ("py-1", "Python.org Tutorial", "https://docs.python.org/3/tutorial/", "tutorial", "beginner"),
            ],
            "beginner", "3-4 weeks", "#e3f2fd", "#1976d2",
        ),
        _node(
            "statistics", "Statistics & Mathematics", 250, 200,
            "Essential mathematical foundations",
            "Learn descriptive statistics, probability, hypothesis testing, and linear algebra.",
            [
                ("stat-1", "Khan Academy Statistics", "https://www.khanacademy.org/math/statistics-probability", "course", "intermediate"),
            ],
            "intermediate", "4-6 weeks", "#e8f5e8", "#388e3c",
        ),
    ]
    return RoadmapGraph(
        id="data-science-roadmap",
        title="Data Science Roadmap",
        description="A comprehensive guide to becoming a data scientist",
        category="Data Science",
        estimated_duration="8-12 months",
        nodes=nodes,
        edges=_chain(("python-basics", "statistics")),
        metadata=_metadata(["data-science", "python", "machine-learning", "statistics"]),
    )


@dataclass(frozen=True)
class RoadmapTemplate:
    summary: TemplateSummary
    build: Callable[[], RoadmapGraph]

    @property
    def id(self) -> str:
        return self.summary.id


TEMPLATES: dict[str, RoadmapTemplate] = {
    t.id: t
    for t in (
        RoadmapTemplate(
            TemplateSummary(
                id="web-development",
                name="Web Development",
                description="Complete roadmap for becoming a full-stack web developer",
                category="Programming",
                difficulty="beginner",
                estimated_duration="6-12 months",
            ),
            build_web_development,
        ),
        RoadmapTemplate(
            TemplateSummary(
                id="data-science",
                name="Data Science",
                description="Complete roadmap for becoming a data scientist",
                category="Data Science",
                difficulty="intermediate",
                estimated_duration="8-12 months",
            ),
            build_data_science,
        ),
    )
}

DEFAULT_TEMPLATE_ID = "web-development"


def list_templates() -> list[TemplateSummary]:
    return [t.summary for t in TEMPLATES.values()]


def get_template(template_id: str) -> RoadmapTemplate | None:
    return TEMPLATES.get(template_id)


def instantiate(template_id: str, request: GenerateRequest | None = None) -> RoadmapGraph | None:
    """Build a fresh graph from a template, stamped with the request's options."""
    template = get_template(template_id)
    if template is None:
        return None
    return _stamped(template, request)


def _stamped(template: RoadmapTemplate, request: GenerateRequest | None) -> RoadmapGraph:
    graph = template.build()
    if request is not None:
        graph.metadata.difficulty = request.difficulty
        graph.metadata.duration = request.duration
        graph.metadata.focus = request.focus
    return graph


def match_template_id(topic: str) -> str:
    """Pick a template by keyword; unknown topics fall back to web development."""
    topic = topic.lower()
    if any(k in topic for k in ("web", "frontend", "react")):
        return "web-development"
    if any(k in topic for k in ("data", "machine learning", "ai")):
        return "data-science"
    return DEFAULT_TEMPLATE_ID


def generate_from_topic(request: GenerateRequest) -> RoadmapGraph:
    template_id = match_template_id(request.topic)
    logger.info("Template matched", topic=request.topic, template_id=template_id)
    return _stamped(TEMPLATES[template_id], request)
