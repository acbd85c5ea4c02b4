"""Tests for the status payload the frontend polls."""

import pytest

from launchpad.jobs.errors import JobNotFoundError
from launchpad.jobs.models import JobType
from launchpad.jobs.poller import StatusPoller


@pytest.fixture
def poller(lifecycle):
    return StatusPoller(lifecycle)


@pytest.mark.asyncio
async def test_pending_status(lifecycle, poller):
    job_id = await lifecycle.create(JobType.LEAD_MAGNET_CONTENT, {}, "user-1")

    status = await poller.status(job_id)

    assert status["job_id"] == job_id
    assert status["job_type"] == "lead_magnet_content"
    assert status["status"] == "pending"
    assert status["progress"] == 0
    assert "result" not in status
    assert "error" not in status


@pytest.mark.asyncio
async def test_processing_status_shows_unit_label(lifecycle, poller):
    job_id = await lifecycle.create(JobType.LEAD_MAGNET_CONTENT, {}, "user-1")
    await lifecycle.claim(job_id)
    await lifecycle.record_progress(job_id, 2, total_units=5, label="Generating Part 3 (3/5)")

    status = await poller.status(job_id)

    assert status["status"] == "processing"
    assert status["progress"] == 40
    assert status["current_unit_label"] == "Generating Part 3 (3/5)"


@pytest.mark.asyncio
async def test_complete_status_carries_result(lifecycle, poller):
    job_id = await lifecycle.create(JobType.FUNNEL, {}, "user-1")
    await lifecycle.claim(job_id)
    await lifecycle.record_progress(job_id, 1, total_units=1)
    await lifecycle.complete(job_id, {"front_end": {"name": "Starter"}})

    status = await poller.status(job_id, JobType.FUNNEL)

    assert status["status"] == "complete"
    assert status["progress"] == 100
    assert status["result"] == {"front_end": {"name": "Starter"}}
    assert status["completed_at"]


@pytest.mark.asyncio
async def test_failed_status_offers_resume(lifecycle, poller):
    job_id = await lifecycle.create(JobType.FUNNEL_PRODUCT, {}, "user-1")
    await lifecycle.claim(job_id)
    await lifecycle.fail(
        job_id,
        "Generating Part 2 failed after 3 attempt(s)",
        failed_at_unit="section_2",
        partial_result={"prepared": {"outline": {}}, "units": {"section_1": {}}, "skipped": []},
        retry_count=2,
    )

    status = await poller.status(job_id)

    assert status["status"] == "failed"
    assert status["error"].startswith("Generating Part 2")
    assert status["failed_at_unit"] == "section_2"
    assert status["retry_count"] == 2
    assert status["can_resume"] is True


@pytest.mark.asyncio
async def test_failed_before_any_unit_cannot_resume(lifecycle, poller):
    job_id = await lifecycle.create(JobType.FUNNEL, {}, "user-1")
    await lifecycle.fail(job_id, "Failed to start generation: down")

    status = await poller.status(job_id)
    assert status["can_resume"] is False


@pytest.mark.asyncio
async def test_type_mismatch_is_not_found(lifecycle, poller):
    job_id = await lifecycle.create(JobType.FUNNEL, {}, "user-1")
    with pytest.raises(JobNotFoundError):
        await poller.status(job_id, JobType.LEAD_MAGNET_IDEAS)


@pytest.mark.asyncio
async def test_polling_does_not_write(lifecycle, store, poller):
    job_id = await lifecycle.create(JobType.FUNNEL, {}, "user-1")
    for _ in range(3):
        await poller.status(job_id)
    assert store.updates == []
