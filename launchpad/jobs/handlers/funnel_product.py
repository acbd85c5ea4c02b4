"""Funnel product content: outline and sections for one funnel level."""

from typing import Any, Dict, List, Optional

from launchpad.agents.llm import ContentGenerator
from launchpad.agents.prompts import product_outline_prompt, product_section_prompt
from launchpad.database.funnels import FunnelService, PRODUCT_LEVELS
from launchpad.jobs.errors import InputValidationError
from launchpad.jobs.models import JobType
from .base import JobContext, require
from .outlined import OutlinedContentHandler


class FunnelProductHandler(OutlinedContentHandler):
    job_type = JobType.FUNNEL_PRODUCT

    def __init__(
        self,
        generator: ContentGenerator,
        funnels: FunnelService,
        min_words: Optional[int] = None,
    ):
        super().__init__(generator, min_words)
        self.funnels = funnels

    def validate(self, input_data: Dict[str, Any]) -> None:
        super().validate(input_data)
        require(input_data, "product", "name")
        require(input_data, "profile", "name")
        level = input_data.get("product_level")
        if level is not None and level not in PRODUCT_LEVELS:
            raise InputValidationError(
                f"product_level must be one of {', '.join(PRODUCT_LEVELS)}"
            )

    def outline_prompt(self, ctx: JobContext) -> str:
        data = ctx.input_data
        return product_outline_prompt(
            data["product"], data["profile"], data.get("audience"), ctx.language
        )

    def section_prompt(
        self,
        ctx: JobContext,
        section: Dict[str, Any],
        previous: List[Dict[str, Any]]
    ) -> str:
        data = ctx.input_data
        return product_section_prompt(
            section,
            data["product"],
            data["profile"],
            data.get("audience"),
            data.get("next_product"),
            previous,
            ctx.language,
        )

    def assemble(
        self,
        ctx: JobContext,
        prepared: Dict[str, Any],
        outputs: Dict[str, Any]
    ) -> Dict[str, Any]:
        outline = prepared["outline"]
        return {
            "title": outline.get("title") or ctx.input_data["product"].get("name"),
            "subtitle": outline.get("subtitle"),
            "sections": self.collect_sections(prepared, outputs),
        }

    async def persist(self, ctx: JobContext, result: Dict[str, Any]) -> Optional[bool]:
        funnel_id = ctx.input_data.get("funnel_id")
        level = ctx.input_data.get("product_level")
        if not funnel_id or not level or not ctx.user_id:
            return None
        await self.funnels.update_generated(
            funnel_id, ctx.user_id, {f"{level}_content": result}
        )
        return True
