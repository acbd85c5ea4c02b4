"""Funnel architecture: one unit producing the four-level funnel."""

from typing import Any, Dict, List

from launchpad.agents.llm import ContentGenerator
from launchpad.agents.prompts import FUNNEL_SYSTEM_PROMPT, funnel_prompt
from launchpad.database.funnels import PRODUCT_LEVELS
from launchpad.jobs.errors import OutputValidationError
from launchpad.jobs.models import JobType
from .base import JobContext, JobHandler, SubTask, require


def check_funnel(funnel: Any) -> None:
    if not isinstance(funnel, dict):
        raise OutputValidationError("Funnel response is not an object")
    missing = [
        level for level in PRODUCT_LEVELS
        if not isinstance(funnel.get(level), dict) or not funnel[level].get("name")
    ]
    if missing:
        raise OutputValidationError(
            f"Funnel is missing products: {', '.join(missing)}",
            failures=missing
        )


class FunnelHandler(JobHandler):
    job_type = JobType.FUNNEL

    def __init__(self, generator: ContentGenerator):
        self.generator = generator

    def validate(self, input_data: Dict[str, Any]) -> None:
        super().validate(input_data)
        require(input_data, "profile", "name")

    def plan(self, ctx: JobContext, prepared: Dict[str, Any]) -> List[SubTask]:
        data = ctx.input_data

        async def run(outputs: Dict[str, Any]) -> Dict[str, Any]:
            return await self.generator.generate_json(
                funnel_prompt(
                    data["profile"],
                    data.get("audience"),
                    data.get("existing_product"),
                    ctx.language,
                ),
                system=FUNNEL_SYSTEM_PROMPT,
                max_tokens=3000,
            )

        return [SubTask(
            name="funnel",
            label="Generating funnel architecture...",
            run=run,
            validate=check_funnel,
        )]

    def assemble(
        self,
        ctx: JobContext,
        prepared: Dict[str, Any],
        outputs: Dict[str, Any]
    ) -> Dict[str, Any]:
        # Not written anywhere: the user decides whether to save the funnel
        return dict(outputs["funnel"])
