"""
ContentGenerator: the one place the service talks to Claude.

Wraps ChatAnthropic, maps provider failures onto ProviderError so the
retry policy can tell transient failures from permanent ones, and runs
structured responses through the shared JSON decoder.
"""

import time
from typing import Any, Dict, Optional, Type

import anthropic
from langchain_anthropic import ChatAnthropic
from langchain_core.messages import HumanMessage, SystemMessage

from launchpad.config import config
from launchpad.jobs.errors import ProviderError
from launchpad.utils.logging import provider_logger as log
from .json_decoder import decode_provider_json


def _response_text(content: Any) -> str:
    """AIMessage.content is a string, or a list of content blocks."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class ContentGenerator:
    """Generates text and JSON with Claude."""

    def __init__(
        self,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        api_key: Optional[str] = None,
        timeout: float = 120.0,
    ):
        self.model_name = model or config.MODEL_NAME
        self.temperature = config.TEMPERATURE if temperature is None else temperature
        self.api_key = api_key or config.ANTHROPIC_API_KEY
        self.timeout = timeout
        self._llms: Dict[int, ChatAnthropic] = {}

    def _llm(self, max_tokens: int) -> ChatAnthropic:
        if max_tokens not in self._llms:
            self._llms[max_tokens] = ChatAnthropic(
                model=self.model_name,
                temperature=self.temperature,
                max_tokens=max_tokens,
                anthropic_api_key=self.api_key,
                timeout=self.timeout,
                max_retries=0,  # retries are the worker's job
            )
        return self._llms[max_tokens]

    async def complete(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        max_tokens: int = 4000,
    ) -> str:
        """
        Send one prompt and return the response text.

        Raises:
            ProviderError: With the provider's status code when it gave one
        """
        messages = []
        if system:
            messages.append(SystemMessage(content=system))
        messages.append(HumanMessage(content=prompt))

        start_time = time.time()
        try:
            response = await self._llm(max_tokens).ainvoke(messages)
        except anthropic.APIStatusError as e:
            log.warning(f"Claude returned HTTP {e.status_code}: {e.message}")
            raise ProviderError(f"Claude API error {e.status_code}: {e.message}", status_code=e.status_code) from e
        except anthropic.APIConnectionError as e:
            log.warning(f"Claude connection failed: {e}")
            raise ProviderError(f"Claude API unreachable: {e}") from e

        text = _response_text(response.content)
        log.debug(
            f"Claude responded in {time.time() - start_time:.1f}s",
            chars=len(text),
            max_tokens=max_tokens
        )
        if not text.strip():
            raise ProviderError("Empty response from AI")
        return text

    async def generate_json(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        max_tokens: int = 4000,
        expect: Optional[Type] = dict,
    ) -> Any:
        """Send one prompt and decode the response as JSON."""
        text = await self.complete(prompt, system=system, max_tokens=max_tokens)
        return decode_provider_json(text, expect=expect)
