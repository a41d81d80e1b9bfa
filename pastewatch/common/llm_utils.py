"""Shared utilities for parsing LLM responses."""

from __future__ import annotations

import json


def strip_code_fences(raw: str) -> str:
    """Drop markdown fence lines (```json ... ```) around a response."""
    if not raw.lstrip().startswith("```"):
        return raw
    lines = [l for l in raw.split("\n") if not l.strip().startswith("```")]
    return "\n".join(lines)


def parse_llm_json(raw: str) -> dict:
    """Parse a JSON object out of an LLM response.

    Tries the fence-stripped text first, then the outermost ``{...}`` span.
    Anything that is not a JSON object yields an empty dict.
    """
    if not raw:
        return {}

    text = strip_code_fences(raw)
    candidates = [text]
    start = text.find("{")
    end = text.rfind("}") + 1
    if start >= 0 and end > start:
        candidates.append(text[start:end])

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data

    return {}
