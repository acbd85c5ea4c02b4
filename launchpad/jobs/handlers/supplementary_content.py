"""
Supplementary documents for a saved funnel: a TLDR for every product
level, plus a cross-promotion paragraph for paid levels when the creator
has an existing product to point to.
"""

from typing import Any, Dict, List, Optional

from launchpad.agents.llm import ContentGenerator
from launchpad.agents.prompts import (
    CROSS_PROMO_SYSTEM_PROMPT,
    TLDR_SYSTEM_PROMPT,
    cross_promo_prompt,
    tldr_prompt,
)
from launchpad.database.funnels import FunnelService, PRODUCT_LEVELS
from launchpad.jobs.errors import FatalJobError, OutputValidationError
from launchpad.jobs.models import JobType
from .base import JobContext, JobHandler, SubTask, require


TLDR_TEXT_FIELDS = ("what_it_is", "who_its_for", "problem_solved", "cta")
TLDR_LIST_FIELDS = ("whats_inside", "key_benefits")


def check_tldr(data: Any) -> None:
    if not isinstance(data, dict):
        raise OutputValidationError("TLDR response is not an object")
    missing = [
        key for key in TLDR_TEXT_FIELDS
        if not isinstance(data.get(key), str) or not data[key].strip()
    ]
    missing += [
        key for key in TLDR_LIST_FIELDS
        if not isinstance(data.get(key), list) or not data[key]
    ]
    if missing:
        raise OutputValidationError(
            f"TLDR is missing fields: {', '.join(missing)}",
            failures=missing
        )


def check_cross_promo(text: Any) -> None:
    if not isinstance(text, str) or not text.strip():
        raise OutputValidationError("Cross-promo is empty")


class SupplementaryContentHandler(JobHandler):
    job_type = JobType.SUPPLEMENTARY_CONTENT

    def __init__(self, generator: ContentGenerator, funnels: FunnelService):
        self.generator = generator
        self.funnels = funnels

    def validate(self, input_data: Dict[str, Any]) -> None:
        super().validate(input_data)
        require(input_data, "funnel_id")

    async def prepare(self, ctx: JobContext) -> Dict[str, Any]:
        funnel = await self.funnels.get_with_relations(ctx.input_data["funnel_id"], ctx.user_id)
        if not funnel:
            raise FatalJobError("Funnel not found", unit="prepare")

        products = {
            level: funnel[level]
            for level in PRODUCT_LEVELS
            if isinstance(funnel.get(level), dict) and funnel[level].get("name")
        }
        return {
            "funnel_name": funnel.get("name"),
            "language": funnel.get("language") or ctx.language,
            "profile": funnel.get("profiles") or {"name": "Creator"},
            "existing_product": funnel.get("existing_products"),
            "products": products,
        }

    def plan(self, ctx: JobContext, prepared: Dict[str, Any]) -> List[SubTask]:
        existing_product = prepared.get("existing_product")
        units = []
        for level in PRODUCT_LEVELS:
            product = prepared["products"].get(level)
            if not product:
                continue
            units.append(SubTask(
                name=f"{level}_tldr",
                label=f"Generating {level.replace('_', ' ')} TLDR...",
                run=self._tldr_runner(product, prepared["language"]),
                validate=check_tldr,
            ))
            if existing_product and level != "front_end":
                units.append(SubTask(
                    name=f"{level}_cross_promo",
                    label=f"Generating {level.replace('_', ' ')} cross-promo...",
                    run=self._cross_promo_runner(product, prepared),
                    optional=True,
                    validate=check_cross_promo,
                ))
        return units

    def _tldr_runner(self, product: Dict[str, Any], language: str):
        async def run(outputs: Dict[str, Any]) -> Dict[str, Any]:
            return await self.generator.generate_json(
                tldr_prompt(product, language),
                system=TLDR_SYSTEM_PROMPT,
                max_tokens=1000,
            )
        return run

    def _cross_promo_runner(self, product: Dict[str, Any], prepared: Dict[str, Any]):
        async def run(outputs: Dict[str, Any]) -> str:
            text = await self.generator.complete(
                cross_promo_prompt(
                    product,
                    prepared["existing_product"],
                    prepared["profile"],
                    prepared["language"],
                ),
                system=CROSS_PROMO_SYSTEM_PROMPT,
                max_tokens=500,
            )
            return text.strip()
        return run

    def assemble(
        self,
        ctx: JobContext,
        prepared: Dict[str, Any],
        outputs: Dict[str, Any]
    ) -> Dict[str, Any]:
        return {
            "funnel_id": ctx.input_data["funnel_id"],
            "generated": list(outputs.keys()),
            "documents": dict(outputs),
        }

    async def persist(self, ctx: JobContext, result: Dict[str, Any]) -> Optional[bool]:
        if not result["documents"] or not ctx.user_id:
            return None
        await self.funnels.update_generated(
            ctx.input_data["funnel_id"], ctx.user_id, result["documents"]
        )
        return True
