"""Prompt text for AI roadmap generation."""

from app.generator.models import GenerateRequest

SYSTEM_PROMPT = "You are a learning roadmap generator. Always respond with valid JSON only."

DURATION_HELP = "short=1-3 months, medium=3-6 months, long=6+ months"

ROADMAP_PROMPT_TEMPLATE = """
Create a comprehensive learning roadmap for "{topic}" with the following specifications:
- Difficulty Level: {difficulty}
- Learning Duration: {duration} ({duration_help})
- Focus Areas: {focus}
- Additional Requirements: {requirements}

Please return a JSON response with the following structure:
{{
  "title": "Learning Roadmap Title",
  "description": "Brief description of the roadmap",
  "nodes": [
    {{
      "id": "unique-id",
      "type": "topic|milestone|subtopic|optional|prerequisite",
      "position": {{ "x": 100, "y": 100 }},
      "data": {{
        "label": "Topic Name",
        "description": "Brief description",
        "content": "Detailed learning content and explanation",
        "resources": [
          {{
            "title": "Resource Title",
            "url": "https://example.com",
            "type": "documentation|tutorial|video|book|course|practice",
            "difficulty": "beginner|intermediate|advanced",
            "free": true
          }}
        ],
        "status": "pending",
        "difficulty": "beginner|intermediate|advanced",
        "estimatedTime": "2 weeks"
      }}
    }}
  ],
  "edges": [
    {{
      "id": "edge-unique-id",
      "source": "source-node-id",
      "target": "target-node-id",
      "type": "smoothstep"
    }}
  ]
}}

Important guidelines:
1. Create 8-15 nodes for a comprehensive roadmap
2. Include a mix of topics, milestones, and subtopics
3. Position nodes in a logical flow (vary x: 50-800, y: 50-600)
4. Create edges to connect nodes in proper learning sequence
5. Each node should connect to its prerequisites and next steps
6. Use "smoothstep" as the edge type for all connections
7. Provide real, working URLs for resources when possible
8. Include diverse resource types (docs, tutorials, videos, books)
9. Make content detailed and educational
10. Adjust complexity based on difficulty level
11. Include practical projects as milestones
12. Ensure nodes are well-spaced (no overlapping)
13. CRITICAL: Create a connected graph - no isolated nodes!
14. Return ONLY valid JSON, no additional text

Focus on creating a practical, step-by-step learning path that guides learners from basics to advanced concepts.
"""


def build_roadmap_prompt(request: GenerateRequest) -> str:
    focus = ", ".join(request.focus) if request.focus else "general"
    return ROADMAP_PROMPT_TEMPLATE.format(
        topic=request.topic,
        difficulty=request.difficulty,
        duration=request.duration,
        duration_help=DURATION_HELP,
        focus=focus,
        requirements=request.custom_requirements or "None",
    )
