"""
Service wiring.

Builds the job store, lifecycle manager, dispatcher, worker and poller
once per process. Routes receive them through Depends(get_services),
which tests replace via app.dependency_overrides.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Optional

from launchpad.agents.embeddings import EmbeddingClient, KnowledgeSearch
from launchpad.agents.llm import ContentGenerator
from launchpad.config import AppConfig, config
from launchpad.database.email_sequences import EmailSequenceService
from launchpad.database.funnels import FunnelService
from launchpad.database.jobs import JobStore
from launchpad.database.knowledge import KnowledgeService
from launchpad.database.lead_magnets import LeadMagnetService
from launchpad.jobs.dispatcher import Dispatcher, HttpDispatcher, QueueDispatcher
from launchpad.jobs.handlers import JobHandler, build_handlers
from launchpad.jobs.lifecycle import JobLifecycleManager
from launchpad.jobs.models import JobType
from launchpad.jobs.poller import StatusPoller
from launchpad.jobs.retry import RetryPolicy
from launchpad.jobs.worker import WorkerExecutor


@dataclass
class Services:
    lifecycle: JobLifecycleManager
    dispatcher: Dispatcher
    worker: WorkerExecutor
    poller: StatusPoller
    handlers: Dict[JobType, JobHandler]
    search: Optional[KnowledgeSearch] = None


def build_dispatcher(cfg: AppConfig) -> Dispatcher:
    if cfg.DISPATCH_BACKEND == "rq":
        from launchpad.queue.connection import get_generation_queue

        return QueueDispatcher(
            get_generation_queue,
            ack_timeout=cfg.DISPATCH_ACK_TIMEOUT_SECONDS,
            job_timeout=cfg.WORKER_JOB_TIMEOUT_SECONDS,
        )
    return HttpDispatcher(
        cfg.worker_url,
        api_key=cfg.WORKER_API_KEY,
        ack_timeout=cfg.DISPATCH_ACK_TIMEOUT_SECONDS,
    )


def build_services(cfg: AppConfig = config) -> Services:
    lifecycle = JobLifecycleManager(JobStore())
    generator = ContentGenerator()

    knowledge = KnowledgeService()
    search = None
    if cfg.knowledge_search_enabled:
        search = KnowledgeSearch(EmbeddingClient(), knowledge)

    handlers = build_handlers(
        generator,
        funnels=FunnelService(),
        lead_magnets=LeadMagnetService(),
        knowledge=knowledge,
        search=search,
        email_sequences=EmailSequenceService(),
    )

    return Services(
        lifecycle=lifecycle,
        dispatcher=build_dispatcher(cfg),
        worker=WorkerExecutor(lifecycle, handlers, RetryPolicy.from_config(cfg)),
        poller=StatusPoller(lifecycle),
        handlers=handlers,
        search=search,
    )


@lru_cache(maxsize=1)
def get_services() -> Services:
    """Process-wide services; clients connect lazily on first use."""
    return build_services()
