"""Lead magnet content: outline, sections, and a social promotion kit."""

from typing import Any, Dict, List, Optional

from launchpad.agents.llm import ContentGenerator
from launchpad.agents.prompts import (
    PROMOTION_KIT_SYSTEM_PROMPT,
    lead_magnet_outline_prompt,
    lead_magnet_section_prompt,
    promotion_kit_prompt,
)
from launchpad.database.lead_magnets import LeadMagnetService
from launchpad.jobs.models import JobType
from .base import JobContext, SubTask, require
from .outlined import OutlinedContentHandler


class LeadMagnetContentHandler(OutlinedContentHandler):
    job_type = JobType.LEAD_MAGNET_CONTENT
    section_max_tokens = 1200

    def __init__(
        self,
        generator: ContentGenerator,
        lead_magnets: LeadMagnetService,
        min_words: Optional[int] = None,
    ):
        super().__init__(generator, min_words)
        self.lead_magnets = lead_magnets

    def validate(self, input_data: Dict[str, Any]) -> None:
        super().validate(input_data)
        require(input_data, "lead_magnet", "title")
        require(input_data, "profile", "name")
        require(input_data, "front_end_product", "name")

    def outline_prompt(self, ctx: JobContext) -> str:
        data = ctx.input_data
        return lead_magnet_outline_prompt(
            data["lead_magnet"], data["profile"], data["front_end_product"], ctx.language
        )

    def section_prompt(
        self,
        ctx: JobContext,
        section: Dict[str, Any],
        previous: List[Dict[str, Any]]
    ) -> str:
        data = ctx.input_data
        return lead_magnet_section_prompt(
            section,
            data["lead_magnet"],
            data["profile"],
            data["front_end_product"],
            data.get("audience"),
            previous,
            ctx.language,
        )

    def extra_units(self, ctx: JobContext, prepared: Dict[str, Any]) -> List[SubTask]:
        lead_magnet = ctx.input_data["lead_magnet"]

        async def run(outputs: Dict[str, Any]) -> Dict[str, Any]:
            return await self.generator.generate_json(
                promotion_kit_prompt(lead_magnet, ctx.language),
                system=PROMOTION_KIT_SYSTEM_PROMPT,
                max_tokens=800,
            )

        return [SubTask(
            name="promotion_kit",
            label="Generating promotion kit...",
            run=run,
            optional=True,
        )]

    def assemble(
        self,
        ctx: JobContext,
        prepared: Dict[str, Any],
        outputs: Dict[str, Any]
    ) -> Dict[str, Any]:
        outline = prepared["outline"]
        lead_magnet = ctx.input_data["lead_magnet"]
        return {
            "title": outline.get("title") or lead_magnet.get("title"),
            "subtitle": outline.get("subtitle"),
            "keyword": lead_magnet.get("keyword"),
            "sections": self.collect_sections(prepared, outputs),
            "promotion_kit": outputs.get("promotion_kit"),
        }

    async def persist(self, ctx: JobContext, result: Dict[str, Any]) -> Optional[bool]:
        lead_magnet_id = ctx.input_data["lead_magnet"].get("id")
        if not lead_magnet_id or not ctx.user_id:
            return None
        await self.lead_magnets.save_content(lead_magnet_id, ctx.user_id, result)
        return True
