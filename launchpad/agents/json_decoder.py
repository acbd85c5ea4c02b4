"""
Defensive JSON decoding for LLM responses.

Claude usually answers with bare JSON, but sometimes wraps it in a
markdown fence or surrounds it with prose. Every consumer of a
structured provider response goes through decode_provider_json.
"""

import json
import re
from typing import Any, Optional, Type

from launchpad.jobs.errors import MalformedProviderResponse

_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


def strip_code_fence(text: str) -> str:
    """Return the body of the first markdown code block, or the text itself."""
    if "```json" in text:
        return text.split("```json", 1)[1].split("```", 1)[0].strip()
    if "```" in text:
        parts = text.split("```")
        if len(parts) >= 3:
            return parts[1].strip()
        return text.replace("```", "").strip()
    return text


def decode_provider_json(text: Optional[str], expect: Optional[Type] = dict) -> Any:
    """
    Parse a provider response as JSON.

    Tries the response as-is (minus any code fence), then the widest
    brace- or bracket-delimited substring.

    Args:
        text: Raw response text
        expect: Required top-level type (dict or list); None accepts anything

    Raises:
        MalformedProviderResponse: If no JSON of the expected type can be found
    """
    if text is None or not text.strip():
        raise MalformedProviderResponse("Empty response from AI", raw_text=text or "")

    cleaned = strip_code_fence(text.strip())

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        data = None
        patterns = [_ARRAY_RE, _OBJECT_RE] if expect is list else [_OBJECT_RE, _ARRAY_RE]
        for pattern in patterns:
            match = pattern.search(cleaned)
            if not match:
                continue
            try:
                data = json.loads(match.group())
                break
            except json.JSONDecodeError:
                continue
        if data is None:
            raise MalformedProviderResponse(
                f"Failed to parse AI response as JSON: {e.msg}",
                raw_text=text
            ) from e

    if expect is not None and not isinstance(data, expect):
        raise MalformedProviderResponse(
            f"Expected a JSON {expect.__name__}, got {type(data).__name__}",
            raw_text=text
        )
    return data
