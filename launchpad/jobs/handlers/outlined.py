"""
Outline-then-sections generation, shared by lead magnet content and
funnel product content.

prepare() asks for an outline; every outline entry becomes one mandatory
unit, generated in order with the earlier sections as context.
"""

from abc import abstractmethod
from typing import Any, Dict, List, Optional

from launchpad.agents.llm import ContentGenerator
from launchpad.agents.prompts import OUTLINE_SYSTEM_PROMPT, SECTION_SYSTEM_PROMPT
from launchpad.agents.validator import validate_section
from launchpad.jobs.errors import OutputValidationError
from .base import JobContext, JobHandler, SubTask


def section_unit_name(index: int) -> str:
    return f"section_{index + 1}"


class OutlinedContentHandler(JobHandler):
    outline_max_tokens = 1000
    section_max_tokens = 1500

    def __init__(self, generator: ContentGenerator, min_words: Optional[int] = None):
        self.generator = generator
        self.min_words = min_words

    @abstractmethod
    def outline_prompt(self, ctx: JobContext) -> str:
        ...

    @abstractmethod
    def section_prompt(
        self,
        ctx: JobContext,
        section: Dict[str, Any],
        previous: List[Dict[str, Any]]
    ) -> str:
        ...

    def extra_units(self, ctx: JobContext, prepared: Dict[str, Any]) -> List[SubTask]:
        return []

    async def prepare(self, ctx: JobContext) -> Dict[str, Any]:
        outline = await ctx.retry("Generating outline...", lambda: self._generate_outline(ctx))
        return {"outline": outline}

    async def _generate_outline(self, ctx: JobContext) -> Dict[str, Any]:
        outline = await self.generator.generate_json(
            self.outline_prompt(ctx),
            system=OUTLINE_SYSTEM_PROMPT,
            max_tokens=self.outline_max_tokens,
        )
        chapters = outline.get("chapters")
        if not isinstance(chapters, list) or not chapters:
            raise OutputValidationError("Outline has no chapters")
        if not all(isinstance(c, dict) and c.get("title") for c in chapters):
            raise OutputValidationError("Outline chapters need a title")
        return outline

    def plan(self, ctx: JobContext, prepared: Dict[str, Any]) -> List[SubTask]:
        chapters = prepared["outline"]["chapters"]
        total = len(chapters)
        units = [
            SubTask(
                name=section_unit_name(i),
                label=f"Generating {section['title']} ({i + 1}/{total})",
                run=self._section_runner(ctx, i, section),
                validate=self._section_validator(section["title"]),
            )
            for i, section in enumerate(chapters)
        ]
        return units + self.extra_units(ctx, prepared)

    def _section_runner(self, ctx: JobContext, index: int, section: Dict[str, Any]):
        async def run(outputs: Dict[str, Any]) -> Dict[str, Any]:
            previous = [
                outputs[section_unit_name(j)]
                for j in range(index)
                if section_unit_name(j) in outputs
            ]
            data = await self.generator.generate_json(
                self.section_prompt(ctx, section, previous),
                system=SECTION_SYSTEM_PROMPT,
                max_tokens=self.section_max_tokens,
            )
            return {**section, **data}
        return run

    def _section_validator(self, title: str):
        def check(value: Any) -> None:
            validate_section(value, title, self.min_words)
        return check

    def collect_sections(self, prepared: Dict[str, Any], outputs: Dict[str, Any]) -> List[Dict[str, Any]]:
        count = len(prepared["outline"]["chapters"])
        return [
            outputs[section_unit_name(i)]
            for i in range(count)
            if section_unit_name(i) in outputs
        ]
