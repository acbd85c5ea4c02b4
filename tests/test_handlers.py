"""End-to-end handler tests: each job type run by the worker against a scripted generator."""

import pytest

from launchpad.agents.prompts import (
    CROSS_PROMO_SYSTEM_PROMPT,
    EMAIL_SYSTEM_PROMPT,
    FUNNEL_SYSTEM_PROMPT,
    IDEAS_SYSTEM_PROMPT,
    OUTLINE_SYSTEM_PROMPT,
    PROMOTION_KIT_SYSTEM_PROMPT,
    SECTION_SYSTEM_PROMPT,
    TLDR_SYSTEM_PROMPT,
)
from launchpad.jobs.errors import (
    InputValidationError,
    OutputValidationError,
    PersistenceError,
    ProviderError,
)
from launchpad.jobs.handlers import build_handlers
from launchpad.jobs.handlers.supplementary_content import check_tldr
from launchpad.jobs.models import JobStatus, JobType
from launchpad.jobs.worker import WorkerExecutor
from tests.conftest import FakeGenerator, words

OUTLINE = {
    "title": "The Funnel Starter Guide",
    "subtitle": "Five steps",
    "chapters": [
        {"type": "cover", "title": "Cover"},
        {"type": "introduction", "title": "Why Funnels"},
        {"type": "chapter", "number": 1, "title": "Step One"},
    ],
}

FUNNEL = {
    level: {"name": f"{level} product", "format": "Guide", "price": 7}
    for level in ("front_end", "bump", "upsell_1", "upsell_2")
}


def section_body(prompt):
    return {"content": words(60)}


class FakeFunnels:
    def __init__(self, funnel=None, fail_update=False):
        self.funnel = funnel
        self.fail_update = fail_update
        self.updates = []

    async def get_with_relations(self, funnel_id, user_id):
        return self.funnel

    async def update_generated(self, funnel_id, user_id, fields):
        if self.fail_update:
            raise PersistenceError("funnel update failed")
        self.updates.append((funnel_id, user_id, fields))
        return {"id": funnel_id, **fields}


class FakeLeadMagnets:
    def __init__(self):
        self.saved = []

    async def save_content(self, lead_magnet_id, user_id, content):
        self.saved.append((lead_magnet_id, user_id, content))
        return {"id": lead_magnet_id}


class FakeEmbeddingModel:
    model = "text-embedding-3-small"


class FakeSearch:
    def __init__(self, result=None, error=None):
        self.embeddings = FakeEmbeddingModel()
        self.result = result
        self.error = error
        self.queries = []

    async def search(self, query, *, limit=10, threshold=0.7):
        self.queries.append((query, limit, threshold))
        if self.error:
            raise self.error
        return self.result


class FakeKnowledgeLog:
    def __init__(self):
        self.logged = []

    async def log_retrieval(self, entry):
        self.logged.append(entry)


@pytest.fixture
def funnels():
    return FakeFunnels()


@pytest.fixture
def lead_magnets():
    return FakeLeadMagnets()


@pytest.fixture
def run_job(lifecycle, policy, sleep):
    async def run(job_type, input_data, generator, **services):
        services.setdefault("funnels", FakeFunnels())
        services.setdefault("lead_magnets", FakeLeadMagnets())
        handlers = build_handlers(generator, **services)
        handlers[job_type].validate(input_data)
        job_id = await lifecycle.create(job_type, input_data, "user-1")
        await WorkerExecutor(lifecycle, handlers, policy, sleep=sleep).execute(job_id)
        return await lifecycle.read(job_id)
    return run


# ===== Lead magnet content =====

LEAD_MAGNET_INPUT = {
    "lead_magnet": {"id": "lm-1", "title": "Funnel Starter", "keyword": "FUNNEL"},
    "profile": {"name": "Ana"},
    "front_end_product": {"name": "Funnel Kit", "price": 27},
}


@pytest.mark.asyncio
async def test_lead_magnet_content(run_job, lead_magnets):
    generator = FakeGenerator({
        OUTLINE_SYSTEM_PROMPT: [OUTLINE],
        SECTION_SYSTEM_PROMPT: [section_body],
        PROMOTION_KIT_SYSTEM_PROMPT: [{"instagram": "post"}],
    })

    job = await run_job(
        JobType.LEAD_MAGNET_CONTENT, LEAD_MAGNET_INPUT, generator, lead_magnets=lead_magnets
    )

    assert job.status == JobStatus.COMPLETE
    assert job.total_units == 4
    assert job.result["title"] == "The Funnel Starter Guide"
    assert job.result["keyword"] == "FUNNEL"
    assert [s["title"] for s in job.result["sections"]] == ["Cover", "Why Funnels", "Step One"]
    assert job.result["promotion_kit"] == {"instagram": "post"}
    assert job.result["persisted"] is True
    assert lead_magnets.saved[0][:2] == ("lm-1", "user-1")

    section_calls = generator.calls_for(SECTION_SYSTEM_PROMPT)
    assert "Previous sections" not in section_calls[0]["prompt"]
    assert "Why Funnels:" in section_calls[2]["prompt"]


@pytest.mark.asyncio
async def test_lead_magnet_short_section_is_regenerated(run_job):
    generator = FakeGenerator({
        OUTLINE_SYSTEM_PROMPT: [OUTLINE],
        SECTION_SYSTEM_PROMPT: [
            section_body,
            {"content": "too short"},
            section_body,
        ],
        PROMOTION_KIT_SYSTEM_PROMPT: [{}],
    })

    job = await run_job(JobType.LEAD_MAGNET_CONTENT, LEAD_MAGNET_INPUT, generator)

    assert job.status == JobStatus.COMPLETE
    assert job.retry_count == 1
    assert len(generator.calls_for(SECTION_SYSTEM_PROMPT)) == 4


@pytest.mark.asyncio
async def test_lead_magnet_promotion_kit_is_optional(run_job):
    generator = FakeGenerator({
        OUTLINE_SYSTEM_PROMPT: [OUTLINE],
        SECTION_SYSTEM_PROMPT: [section_body],
        PROMOTION_KIT_SYSTEM_PROMPT: [ProviderError("overloaded", status_code=529)],
    })

    job = await run_job(JobType.LEAD_MAGNET_CONTENT, LEAD_MAGNET_INPUT, generator)

    assert job.status == JobStatus.COMPLETE
    assert job.result["promotion_kit"] is None
    assert job.result["skipped_units"] == ["promotion_kit"]


@pytest.mark.asyncio
async def test_lead_magnet_empty_outline_fails_at_prepare(run_job):
    generator = FakeGenerator({OUTLINE_SYSTEM_PROMPT: [{"title": "x", "chapters": []}]})

    job = await run_job(JobType.LEAD_MAGNET_CONTENT, LEAD_MAGNET_INPUT, generator)

    assert job.status == JobStatus.FAILED
    assert job.failed_at_unit == "prepare"
    assert job.retry_count == 2


@pytest.mark.parametrize("missing", ["lead_magnet", "profile", "front_end_product"])
def test_lead_magnet_input_validation(missing):
    handlers = build_handlers(FakeGenerator(), funnels=FakeFunnels(), lead_magnets=FakeLeadMagnets())
    data = {k: v for k, v in LEAD_MAGNET_INPUT.items() if k != missing}
    with pytest.raises(InputValidationError) as exc_info:
        handlers[JobType.LEAD_MAGNET_CONTENT].validate(data)
    assert missing in str(exc_info.value)


# ===== Funnel product =====

@pytest.mark.asyncio
async def test_funnel_product_writes_level_content(run_job, funnels):
    generator = FakeGenerator({
        OUTLINE_SYSTEM_PROMPT: [OUTLINE],
        SECTION_SYSTEM_PROMPT: [section_body],
    })
    input_data = {
        "funnel_id": "f-1",
        "product_level": "upsell_1",
        "product": {"name": "Deep Dive", "format": "Workbook"},
        "profile": {"name": "Ana"},
    }

    job = await run_job(JobType.FUNNEL_PRODUCT, input_data, generator, funnels=funnels)

    assert job.status == JobStatus.COMPLETE
    assert job.total_units == 3
    funnel_id, user_id, fields = funnels.updates[0]
    assert (funnel_id, user_id) == ("f-1", "user-1")
    assert list(fields) == ["upsell_1_content"]
    assert len(fields["upsell_1_content"]["sections"]) == 3


@pytest.mark.asyncio
async def test_funnel_product_persist_failure_still_completes(run_job):
    generator = FakeGenerator({
        OUTLINE_SYSTEM_PROMPT: [OUTLINE],
        SECTION_SYSTEM_PROMPT: [section_body],
    })
    input_data = {
        "funnel_id": "f-1",
        "product_level": "bump",
        "product": {"name": "Checklist"},
        "profile": {"name": "Ana"},
    }

    job = await run_job(
        JobType.FUNNEL_PRODUCT, input_data, generator, funnels=FakeFunnels(fail_update=True)
    )

    assert job.status == JobStatus.COMPLETE
    assert job.result["persisted"] is False
    assert len(job.result["sections"]) == 3


def test_funnel_product_rejects_unknown_level():
    handlers = build_handlers(FakeGenerator(), funnels=FakeFunnels(), lead_magnets=FakeLeadMagnets())
    with pytest.raises(InputValidationError):
        handlers[JobType.FUNNEL_PRODUCT].validate({
            "product": {"name": "x"},
            "profile": {"name": "Ana"},
            "product_level": "downsell",
        })


# ===== Funnel =====

@pytest.mark.asyncio
async def test_funnel_single_unit(run_job):
    generator = FakeGenerator({FUNNEL_SYSTEM_PROMPT: [FUNNEL]})

    job = await run_job(JobType.FUNNEL, {"profile": {"name": "Ana"}}, generator)

    assert job.status == JobStatus.COMPLETE
    assert job.total_units == 1
    assert job.result == FUNNEL


@pytest.mark.asyncio
async def test_funnel_missing_level_is_retried_then_fails(run_job):
    incomplete = {k: v for k, v in FUNNEL.items() if k != "upsell_2"}
    generator = FakeGenerator({FUNNEL_SYSTEM_PROMPT: [incomplete]})

    job = await run_job(JobType.FUNNEL, {"profile": {"name": "Ana"}}, generator)

    assert job.status == JobStatus.FAILED
    assert job.failed_at_unit == "funnel"
    assert "upsell_2" in job.error_message
    assert len(generator.calls_for(FUNNEL_SYSTEM_PROMPT)) == 3


# ===== Lead magnet ideas =====

IDEAS = {"ideas": [{"title": "Checklist"}, {"title": "Swipe File"}, {"title": "Calculator"}]}
IDEAS_INPUT = {
    "profile": {"id": "p-1", "name": "Ana"},
    "audience": {"id": "a-1", "name": "Coaches"},
    "front_end_product": {"name": "Funnel Kit"},
}


class FakeSearchResult:
    matches = [{"id": "c-1", "content": "Use a tripwire offer", "metadata": {}, "similarity": 0.82}]

    def retrieval_log(self):
        return {"search_query": "q", "chunks_retrieved": 1}


@pytest.mark.asyncio
async def test_ideas_use_knowledge_base(run_job):
    generator = FakeGenerator({IDEAS_SYSTEM_PROMPT: [IDEAS]})
    search = FakeSearch(result=FakeSearchResult())
    knowledge = FakeKnowledgeLog()

    job = await run_job(
        JobType.LEAD_MAGNET_IDEAS, IDEAS_INPUT, generator, search=search, knowledge=knowledge
    )

    assert job.status == JobStatus.COMPLETE
    assert job.result["knowledge_chunks_used"] == 1
    assert len(job.result["ideas"]) == 3
    assert "Use a tripwire offer" in generator.calls_for(IDEAS_SYSTEM_PROMPT)[0]["prompt"]
    assert knowledge.logged[0]["chunks_retrieved"] == 1
    assert knowledge.logged[0]["profile_id"] == "p-1"


@pytest.mark.asyncio
async def test_ideas_survive_search_failure(run_job):
    generator = FakeGenerator({IDEAS_SYSTEM_PROMPT: [IDEAS]})
    search = FakeSearch(error=ProviderError("OpenAI API error 500", status_code=500))
    knowledge = FakeKnowledgeLog()

    job = await run_job(
        JobType.LEAD_MAGNET_IDEAS, IDEAS_INPUT, generator, search=search, knowledge=knowledge
    )

    assert job.status == JobStatus.COMPLETE
    assert job.result["knowledge_chunks_used"] == 0
    assert job.result["skipped_units"] == ["knowledge_search"]
    assert knowledge.logged == []


@pytest.mark.asyncio
async def test_ideas_without_search_configured(run_job):
    generator = FakeGenerator({IDEAS_SYSTEM_PROMPT: [IDEAS]})

    job = await run_job(JobType.LEAD_MAGNET_IDEAS, IDEAS_INPUT, generator)

    assert job.status == JobStatus.COMPLETE
    assert job.total_units == 1
    assert "persisted" not in job.result


# ===== Supplementary content =====

TLDR = {
    "what_it_is": "A step-by-step guide",
    "who_its_for": "New coaches",
    "problem_solved": "No idea where to start",
    "whats_inside": ["Checklist", "Templates"],
    "key_benefits": ["Save time"],
    "cta": "Start today",
}


def saved_funnel(existing_product=None):
    return {
        "id": "f-1",
        "name": "Coaching Funnel",
        "language": "Spanish",
        "profiles": {"name": "Ana"},
        "existing_products": existing_product,
        **FUNNEL,
    }


@pytest.mark.asyncio
async def test_supplementary_content_with_existing_product(run_job):
    funnels = FakeFunnels(saved_funnel({"name": "Signature Course", "price": 497}))
    generator = FakeGenerator({
        TLDR_SYSTEM_PROMPT: [TLDR],
        CROSS_PROMO_SYSTEM_PROMPT: ["  Ready for more? Try the course.  "],
    })

    job = await run_job(JobType.SUPPLEMENTARY_CONTENT, {"funnel_id": "f-1"}, generator, funnels=funnels)

    assert job.status == JobStatus.COMPLETE
    assert job.total_units == 7
    documents = job.result["documents"]
    assert "front_end_cross_promo" not in documents
    assert documents["bump_cross_promo"] == "Ready for more? Try the course."
    assert documents["upsell_2_tldr"] == TLDR
    assert funnels.updates[0][2] == documents
    assert "OUTPUT LANGUAGE: Spanish" in generator.calls_for(TLDR_SYSTEM_PROMPT)[0]["prompt"]


@pytest.mark.asyncio
async def test_supplementary_content_without_existing_product(run_job):
    funnels = FakeFunnels(saved_funnel())
    generator = FakeGenerator({TLDR_SYSTEM_PROMPT: [TLDR]})

    job = await run_job(JobType.SUPPLEMENTARY_CONTENT, {"funnel_id": "f-1"}, generator, funnels=funnels)

    assert job.status == JobStatus.COMPLETE
    assert job.result["generated"] == [
        "front_end_tldr", "bump_tldr", "upsell_1_tldr", "upsell_2_tldr"
    ]


@pytest.mark.asyncio
async def test_supplementary_content_unknown_funnel(run_job):
    job = await run_job(
        JobType.SUPPLEMENTARY_CONTENT, {"funnel_id": "missing"}, FakeGenerator(), funnels=FakeFunnels()
    )

    assert job.status == JobStatus.FAILED
    assert job.error_message == "Funnel not found"
    assert job.failed_at_unit == "prepare"


@pytest.mark.asyncio
async def test_supplementary_content_empty_tldr_is_retried_then_fails(run_job):
    funnels = FakeFunnels(saved_funnel())
    generator = FakeGenerator({TLDR_SYSTEM_PROMPT: [{}]})

    job = await run_job(JobType.SUPPLEMENTARY_CONTENT, {"funnel_id": "f-1"}, generator, funnels=funnels)

    assert job.status == JobStatus.FAILED
    assert job.failed_at_unit == "front_end_tldr"
    assert "what_it_is" in job.error_message
    assert job.retry_count == 2
    assert len(generator.calls_for(TLDR_SYSTEM_PROMPT)) == 3
    assert funnels.updates == []


@pytest.mark.parametrize("field, value", [
    ("cta", "   "),
    ("whats_inside", []),
    ("key_benefits", "Save time"),
])
def test_check_tldr_rejects_incomplete_summary(field, value):
    with pytest.raises(OutputValidationError) as exc_info:
        check_tldr({**TLDR, field: value})
    assert exc_info.value.failures == [field]


# ===== Email sequences =====

def email_reply(prompt):
    number = prompt.split("Write Email ")[1].split(" ")[0]
    return {"subject": f"Subject {number}", "preview": "A quick note", "body": words(160)}


class FakeEmailSequences:
    def __init__(self, fail=False):
        self.fail = fail
        self.replaced = []

    async def replace_for_funnel(self, funnel_id, user_id, sequences):
        if self.fail:
            raise PersistenceError("insert failed")
        self.replaced.append((funnel_id, user_id, sequences))
        return sequences


def funnel_with_lead_magnet():
    return {
        **saved_funnel(),
        "lead_magnet": {"name": "Funnel Starter", "keyword": "FUNNEL"},
    }


@pytest.mark.asyncio
async def test_email_sequences_six_units_two_rows(run_job):
    funnels = FakeFunnels(funnel_with_lead_magnet())
    email_sequences = FakeEmailSequences()
    generator = FakeGenerator({EMAIL_SYSTEM_PROMPT: [email_reply]})

    job = await run_job(
        JobType.EMAIL_SEQUENCES,
        {"funnel_id": "f-1"},
        generator,
        funnels=funnels,
        email_sequences=email_sequences,
    )

    assert job.status == JobStatus.COMPLETE
    assert job.total_units == 6
    assert job.result["persisted"] is True
    lead_magnet_row, front_end_row = job.result["sequences"]
    assert lead_magnet_row["sequence_type"] == "lead_magnet"
    assert front_end_row["sequence_type"] == "front_end"
    assert front_end_row["email_3_subject"] == "Subject 3"
    assert email_sequences.replaced == [("f-1", "user-1", job.result["sequences"])]

    prompts = [call["prompt"] for call in generator.calls_for(EMAIL_SYSTEM_PROMPT)]
    assert "KEYWORD: FUNNEL" in prompts[0]
    assert "FRONT-END PRODUCT: front_end product" in prompts[2]
    assert "OUTPUT LANGUAGE: Spanish" in prompts[0]


@pytest.mark.asyncio
async def test_email_missing_body_is_retried(run_job):
    funnels = FakeFunnels(funnel_with_lead_magnet())
    generator = FakeGenerator({
        EMAIL_SYSTEM_PROMPT: [{"subject": "Hi", "preview": "p", "body": ""}, email_reply],
    })

    job = await run_job(
        JobType.EMAIL_SEQUENCES,
        {"funnel_id": "f-1"},
        generator,
        funnels=funnels,
        email_sequences=FakeEmailSequences(),
    )

    assert job.status == JobStatus.COMPLETE
    assert job.retry_count == 1
    assert len(generator.calls_for(EMAIL_SYSTEM_PROMPT)) == 7


@pytest.mark.asyncio
async def test_email_sequences_save_failure_still_completes(run_job):
    generator = FakeGenerator({EMAIL_SYSTEM_PROMPT: [email_reply]})

    job = await run_job(
        JobType.EMAIL_SEQUENCES,
        {"funnel_id": "f-1"},
        generator,
        funnels=FakeFunnels(funnel_with_lead_magnet()),
        email_sequences=FakeEmailSequences(fail=True),
    )

    assert job.status == JobStatus.COMPLETE
    assert job.result["persisted"] is False
    assert len(job.result["sequences"]) == 2


@pytest.mark.asyncio
async def test_email_sequences_unknown_funnel(run_job):
    job = await run_job(
        JobType.EMAIL_SEQUENCES, {"funnel_id": "missing"}, FakeGenerator(), funnels=FakeFunnels()
    )

    assert job.status == JobStatus.FAILED
    assert job.failed_at_unit == "prepare"
