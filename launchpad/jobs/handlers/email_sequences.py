"""
Email sequences for a saved funnel: a lead magnet sequence and a
front-end sequence, three emails each, one unit per email.
"""

from typing import Any, Dict, List, Optional

from launchpad.agents.llm import ContentGenerator
from launchpad.agents.prompts import (
    EMAIL_PLANS,
    EMAIL_SYSTEM_PROMPT,
    EMAILS_PER_SEQUENCE,
    email_prompt,
)
from launchpad.database.email_sequences import EmailSequenceService
from launchpad.database.funnels import FunnelService
from launchpad.jobs.errors import FatalJobError, OutputValidationError
from launchpad.jobs.models import JobType
from .base import JobContext, JobHandler, SubTask, require

EMAIL_FIELDS = ("subject", "preview", "body")


def check_email(data: Any) -> None:
    if not isinstance(data, dict):
        raise OutputValidationError("Email response is not an object")
    missing = [
        key for key in EMAIL_FIELDS
        if not isinstance(data.get(key), str) or not data[key].strip()
    ]
    if missing:
        raise OutputValidationError(
            f"Email is missing fields: {', '.join(missing)}",
            failures=missing
        )


def email_unit_name(sequence_type: str, number: int) -> str:
    return f"{sequence_type}_email_{number}"


class EmailSequencesHandler(JobHandler):
    job_type = JobType.EMAIL_SEQUENCES

    def __init__(
        self,
        generator: ContentGenerator,
        funnels: FunnelService,
        email_sequences: Optional[EmailSequenceService] = None,
    ):
        self.generator = generator
        self.funnels = funnels
        self.email_sequences = email_sequences

    def validate(self, input_data: Dict[str, Any]) -> None:
        super().validate(input_data)
        require(input_data, "funnel_id")

    async def prepare(self, ctx: JobContext) -> Dict[str, Any]:
        funnel = await self.funnels.get_with_relations(ctx.input_data["funnel_id"], ctx.user_id)
        if not funnel:
            raise FatalJobError("Funnel not found", unit="prepare")

        return {
            "funnel": {
                "front_end": funnel.get("front_end"),
                "lead_magnet": funnel.get("lead_magnet"),
            },
            "profile": funnel.get("profiles") or {"name": "Creator", "business_name": ""},
            "language": ctx.input_data.get("language") or funnel.get("language") or "English",
        }

    def plan(self, ctx: JobContext, prepared: Dict[str, Any]) -> List[SubTask]:
        units = []
        for sequence_type in EMAIL_PLANS:
            for number in range(1, EMAILS_PER_SEQUENCE + 1):
                units.append(SubTask(
                    name=email_unit_name(sequence_type, number),
                    label=(
                        f"Writing {sequence_type.replace('_', ' ')} email "
                        f"{number}/{EMAILS_PER_SEQUENCE}..."
                    ),
                    run=self._email_runner(sequence_type, number, prepared),
                    validate=check_email,
                ))
        return units

    def _email_runner(self, sequence_type: str, number: int, prepared: Dict[str, Any]):
        async def run(outputs: Dict[str, Any]) -> Dict[str, Any]:
            return await self.generator.generate_json(
                email_prompt(
                    sequence_type,
                    number,
                    prepared["funnel"],
                    prepared["profile"],
                    prepared["language"],
                ),
                system=EMAIL_SYSTEM_PROMPT,
                max_tokens=1000,
            )
        return run

    def assemble(
        self,
        ctx: JobContext,
        prepared: Dict[str, Any],
        outputs: Dict[str, Any]
    ) -> Dict[str, Any]:
        # One row per sequence, in email_sequences column form
        sequences = []
        for sequence_type in EMAIL_PLANS:
            row: Dict[str, Any] = {"sequence_type": sequence_type}
            for number in range(1, EMAILS_PER_SEQUENCE + 1):
                email = outputs[email_unit_name(sequence_type, number)]
                for key in EMAIL_FIELDS:
                    row[f"email_{number}_{key}"] = email[key]
            sequences.append(row)
        return {"funnel_id": ctx.input_data["funnel_id"], "sequences": sequences}

    async def persist(self, ctx: JobContext, result: Dict[str, Any]) -> Optional[bool]:
        if self.email_sequences is None or not ctx.user_id:
            return None
        await self.email_sequences.replace_for_funnel(
            ctx.input_data["funnel_id"], ctx.user_id, result["sequences"]
        )
        return True
