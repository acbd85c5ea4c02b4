"""Maps each job type to the handler that runs it."""

from typing import Dict, Optional

from launchpad.agents.embeddings import KnowledgeSearch
from launchpad.agents.llm import ContentGenerator
from launchpad.config import config
from launchpad.database.email_sequences import EmailSequenceService
from launchpad.database.funnels import FunnelService
from launchpad.database.knowledge import KnowledgeService
from launchpad.database.lead_magnets import LeadMagnetService
from launchpad.jobs.models import JobType
from .base import JobHandler
from .email_sequences import EmailSequencesHandler
from .funnel import FunnelHandler
from .funnel_product import FunnelProductHandler
from .lead_magnet_content import LeadMagnetContentHandler
from .lead_magnet_ideas import LeadMagnetIdeasHandler
from .supplementary_content import SupplementaryContentHandler


def build_handlers(
    generator: ContentGenerator,
    *,
    funnels: FunnelService,
    lead_magnets: LeadMagnetService,
    knowledge: Optional[KnowledgeService] = None,
    search: Optional[KnowledgeSearch] = None,
    email_sequences: Optional[EmailSequenceService] = None,
) -> Dict[JobType, JobHandler]:
    handlers = [
        LeadMagnetContentHandler(generator, lead_magnets, config.MIN_SECTION_WORDS),
        FunnelProductHandler(generator, funnels, config.MIN_SECTION_WORDS),
        FunnelHandler(generator),
        LeadMagnetIdeasHandler(
            generator,
            search,
            knowledge,
            threshold=config.RAG_THRESHOLD,
            limit=config.RAG_LIMIT,
        ),
        SupplementaryContentHandler(generator, funnels),
        EmailSequencesHandler(generator, funnels, email_sequences),
    ]
    return {handler.job_type: handler for handler in handlers}
