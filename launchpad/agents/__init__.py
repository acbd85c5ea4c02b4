"""
Content generation for Launchpad jobs.

- llm: ContentGenerator, the single Claude entry point (text and JSON)
- json_decoder: tolerant decoding of model output into JSON
- validator: section word-count checks for long-form content
- prompts: system prompts and prompt builders per job type
- embeddings: OpenAI embeddings and cosine-similarity knowledge search
"""

from launchpad.agents.llm import ContentGenerator
from launchpad.agents.json_decoder import decode_provider_json, strip_code_fence
from launchpad.agents.validator import validate_section, validate_sections

__all__ = [
    "ContentGenerator",
    "decode_provider_json",
    "strip_code_fence",
    "validate_section",
    "validate_sections",
]
