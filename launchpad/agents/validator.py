"""
Content validation for generated sections.

Runs after generation and before a unit's output is accepted. A failure
raises OutputValidationError, which the worker retries like any other
provider failure.
"""

import re
from typing import Any, Dict, List, Optional

from launchpad.config import config
from launchpad.jobs.errors import OutputValidationError

_CHAPTER_KEY = re.compile(r"^chapter\d+$")


def count_words(text: str) -> int:
    return len(text.split())


def extract_sections(data: Dict[str, Any]) -> List[Any]:
    """Sections come as a `chapters` list or as chapter1, chapter2, ... keys."""
    if isinstance(data.get("chapters"), list):
        return data["chapters"]
    keys = sorted(
        (k for k in data if _CHAPTER_KEY.match(k)),
        key=lambda k: int(k[len("chapter"):])
    )
    return [data[k] for k in keys]


def check_section(section: Any, index: int, min_words: int) -> Optional[str]:
    """Return a failure description, or None if the section is acceptable."""
    if not isinstance(section, dict):
        return f"Chapter {index + 1}: not an object"

    label = section.get("title") or f"Chapter {index + 1}"

    if section.get("type") == "cover":
        return None

    title = section.get("title")
    if not isinstance(title, str) or not title.strip():
        return f"{label}: Missing or empty title"

    content = section.get("content")
    if not isinstance(content, str):
        return f"{label}: Content is {type(content).__name__}, expected string"

    words = count_words(content)
    if words < min_words:
        return f"{label}: Content too short ({words} words, minimum {min_words})"

    return None


def validate_sections(
    data: Any,
    task_name: str,
    min_words: Optional[int] = None
) -> None:
    """
    Check every section of generated content.

    Raises:
        OutputValidationError: Listing each failing section
    """
    if min_words is None:
        min_words = config.MIN_SECTION_WORDS

    if not isinstance(data, dict):
        raise OutputValidationError(f"{task_name}: Generated data is missing")

    sections = extract_sections(data)
    if not sections:
        raise OutputValidationError(f"{task_name}: No sections found in generated data")

    failures = [
        failure
        for i, section in enumerate(sections)
        if (failure := check_section(section, i, min_words)) is not None
    ]
    if failures:
        raise OutputValidationError(
            f"{task_name}: Content validation failed for {len(failures)} section(s): "
            + "; ".join(failures),
            failures=failures
        )


def validate_section(section: Any, task_name: str, min_words: Optional[int] = None) -> None:
    """Validate a single generated section."""
    validate_sections({"chapters": [section]}, task_name, min_words)
