"""Prompt templates for LLM visual descriptions."""

import json

SYSTEM_PROMPT = (
    "You are an expert short-form video director. You receive a video topic, "
    "a style and a list of timed segments. For every segment write one visual "
    "description that a text-to-video model can render as a single continuous "
    "shot.\n"
    "\n"
    "Rules:\n"
    "1. Return exactly one description per segment, in segment order\n"
    "2. The first segment is a hook: it must grab attention within its duration\n"
    "3. The last segment is a call to action when its role says so\n"
    "4. Describe visuals only: camera, subject, setting, lighting, motion\n"
    "5. Never include on-screen text, captions or hashtags\n"
    "6. Keep each description under 60 words\n"
    "\n"
    "Respond with ONLY valid JSON matching the provided schema."
)


def build_json_schema() -> dict:
    """Build the JSON schema for expected LLM output."""
    return {
        "type": "object",
        "required": ["descriptions"],
        "properties": {
            "descriptions": {
                "type": "array",
                "items": {
                    "type": "object",
                    "required": ["index", "visual_description"],
                    "properties": {
                        "index": {"type": "integer", "minimum": 0},
                        "visual_description": {"type": "string", "minLength": 1},
                    },
                },
            },
        },
    }


def build_description_prompt(
    topic: str,
    style: str,
    language: str,
    segments: list[dict],
    target_audience: str | None = None,
) -> str:
    """Build the user prompt listing each segment's role and duration."""
    sections = [
        f"## Topic\n{topic}",
        f"## Style\n{style}",
        f"## Language\n{language}",
    ]
    if target_audience:
        sections.append(f"## Target audience\n{target_audience}")
    sections.append(f"## Segments\n```json\n{json.dumps(segments, indent=2)}\n```")
    sections.append(
        f"## Output Schema\n```json\n{json.dumps(build_json_schema(), indent=2)}\n```"
    )
    sections.append(
        "Write one visual description per segment. Respond with ONLY the JSON object."
    )
    return "\n\n".join(sections)
