"""
Lead magnet ideas, grounded in the creator's knowledge base when one is
configured. The knowledge search is optional: ideas are still generated
without it.
"""

from typing import Any, Dict, List, Optional

from launchpad.agents.embeddings import KnowledgeSearch
from launchpad.agents.llm import ContentGenerator
from launchpad.agents.prompts import IDEAS_SYSTEM_PROMPT, ideas_prompt, knowledge_query
from launchpad.database.knowledge import KnowledgeService
from launchpad.jobs.errors import OutputValidationError, PersistenceError
from launchpad.jobs.models import JobType
from launchpad.utils.logging import worker_logger as log
from .base import JobContext, JobHandler, SubTask, require


def check_ideas(data: Any) -> None:
    ideas = data.get("ideas") if isinstance(data, dict) else None
    if not isinstance(ideas, list) or not ideas:
        raise OutputValidationError("Response has no ideas")
    untitled = [i for i, idea in enumerate(ideas) if not isinstance(idea, dict) or not idea.get("title")]
    if untitled:
        raise OutputValidationError(f"{len(untitled)} idea(s) without a title")


class LeadMagnetIdeasHandler(JobHandler):
    job_type = JobType.LEAD_MAGNET_IDEAS

    def __init__(
        self,
        generator: ContentGenerator,
        search: Optional[KnowledgeSearch] = None,
        knowledge: Optional[KnowledgeService] = None,
        *,
        threshold: float = 0.3,
        limit: int = 40,
    ):
        self.generator = generator
        self.search = search
        self.knowledge = knowledge
        self.threshold = threshold
        self.limit = limit

    def validate(self, input_data: Dict[str, Any]) -> None:
        super().validate(input_data)
        require(input_data, "profile", "name")
        require(input_data, "front_end_product", "name")

    def plan(self, ctx: JobContext, prepared: Dict[str, Any]) -> List[SubTask]:
        data = ctx.input_data
        units = []

        if self.search is not None:
            async def search(outputs: Dict[str, Any]) -> Dict[str, Any]:
                result = await self.search.search(
                    knowledge_query(data["profile"], data.get("audience")),
                    limit=self.limit,
                    threshold=self.threshold,
                )
                return {
                    "chunks": [
                        {"id": m["id"], "content": m["content"], "similarity": m["similarity"]}
                        for m in result.matches
                    ],
                    "metrics": result.retrieval_log(),
                }

            units.append(SubTask(
                name="knowledge_search",
                label="Searching knowledge base...",
                run=search,
                optional=True,
            ))

        async def ideas(outputs: Dict[str, Any]) -> Dict[str, Any]:
            chunks = (outputs.get("knowledge_search") or {}).get("chunks")
            return await self.generator.generate_json(
                ideas_prompt(
                    data["profile"],
                    data.get("audience"),
                    data["front_end_product"],
                    data.get("excluded_topics"),
                    chunks,
                    ctx.language,
                ),
                system=IDEAS_SYSTEM_PROMPT,
                max_tokens=2000,
            )

        units.append(SubTask(
            name="ideas",
            label="Generating ideas...",
            run=ideas,
            validate=check_ideas,
        ))
        return units

    def assemble(
        self,
        ctx: JobContext,
        prepared: Dict[str, Any],
        outputs: Dict[str, Any]
    ) -> Dict[str, Any]:
        chunks = (outputs.get("knowledge_search") or {}).get("chunks") or []
        return {**outputs["ideas"], "knowledge_chunks_used": len(chunks)}

    async def persist(self, ctx: JobContext, result: Dict[str, Any]) -> Optional[bool]:
        metrics = (ctx.outputs.get("knowledge_search") or {}).get("metrics")
        if self.knowledge is None or not metrics:
            return None

        profile = ctx.input_data.get("profile") or {}
        audience = ctx.input_data.get("audience") or {}
        try:
            await self.knowledge.log_retrieval({
                "user_id": ctx.user_id,
                "profile_id": profile.get("id"),
                "audience_id": audience.get("id"),
                "source_function": "lead_magnet_ideas",
                "generation_type": "lead-magnet-ideas",
                "model_used": self.search.embeddings.model if self.search else None,
                "generation_successful": True,
                **metrics,
            })
        except PersistenceError as e:
            log.warning(f"Retrieval log not saved: {e}", job_id=ctx.job_id)
        return None
