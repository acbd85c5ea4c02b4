"""Tests for the RQ task entry point and the dispatcher factory."""

import asyncio

from launchpad.api import dependencies
from launchpad.api.dependencies import Services, build_dispatcher
from launchpad.config import AppConfig
from launchpad.jobs.dispatcher import HttpDispatcher, QueueDispatcher
from launchpad.jobs.models import JobType
from launchpad.jobs.poller import StatusPoller
from launchpad.queue.tasks import execute_job_task
from tests.conftest import FakeDispatcher


class CompletingWorker:
    def __init__(self, lifecycle):
        self.lifecycle = lifecycle

    async def execute(self, job_id):
        await self.lifecycle.claim(job_id)
        await self.lifecycle.complete(job_id, {"ok": True})


def test_execute_job_task_returns_final_status(lifecycle, monkeypatch):
    services = Services(
        lifecycle=lifecycle,
        dispatcher=FakeDispatcher(),
        worker=CompletingWorker(lifecycle),
        poller=StatusPoller(lifecycle),
        handlers={},
    )
    monkeypatch.setattr(dependencies, "get_services", lambda: services)
    job_id = asyncio.run(lifecycle.create(JobType.FUNNEL, {}, "user-1"))

    assert execute_job_task(job_id) == "complete"


def test_build_dispatcher_http_by_default():
    cfg = AppConfig(APP_BASE_URL="https://app.example.com", WORKER_API_KEY="k")
    dispatcher = build_dispatcher(cfg)

    assert isinstance(dispatcher, HttpDispatcher)
    assert dispatcher.worker_url == "https://app.example.com/api/worker/process-generation"
    assert dispatcher.api_key == "k"


def test_build_dispatcher_rq():
    cfg = AppConfig(DISPATCH_BACKEND="rq", DISPATCH_ACK_TIMEOUT_SECONDS=2)
    dispatcher = build_dispatcher(cfg)

    assert isinstance(dispatcher, QueueDispatcher)
    assert dispatcher.ack_timeout == 2
