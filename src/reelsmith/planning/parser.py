"""LLM response parser for segment descriptions."""

import json
import re

from reelsmith.models.errors import ReelsmithError


def parse_llm_response(response_text: str) -> dict:
    """Parse LLM response, handling markdown-wrapped JSON."""
    text = response_text.strip()

    json_match = re.search(r"```(?:json)?\s*\n?(.*?)\n?```", text, re.DOTALL)
    if json_match:
        text = json_match.group(1).strip()

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        brace_match = re.search(r"\{.*\}", text, re.DOTALL)
        if brace_match:
            try:
                return json.loads(brace_match.group())
            except json.JSONDecodeError:
                pass
        raise ReelsmithError(
            f"Failed to parse LLM response as JSON: {e}",
            component="planner",
            details={"response_preview": text[:200]},
        )


def extract_descriptions(data: dict, expected: int) -> list[str]:
    """Return one description per segment index, in index order.

    Entries may arrive unordered; missing or blank indices are an error.
    """
    by_index: dict[int, str] = {}
    for item in data.get("descriptions", []):
        try:
            idx = int(item["index"])
            text = str(item["visual_description"]).strip()
        except (KeyError, TypeError, ValueError):
            continue
        if 0 <= idx < expected and text:
            by_index.setdefault(idx, text)

    missing = [i for i in range(expected) if i not in by_index]
    if missing:
        raise ReelsmithError(
            "LLM response is missing segment descriptions",
            component="planner",
            details={"missing": missing},
        )
    return [by_index[i] for i in range(expected)]
