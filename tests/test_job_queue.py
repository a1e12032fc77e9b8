import asyncio
import json

import pytest

from domain.errors import DuplicateJobError, NotFoundError, QueueUnavailableError, TransportError
from domain.schemas import JobStatus

TERMINAL = {JobStatus.COMPLETED, JobStatus.FAILED}
LEGAL_HISTORIES = (
    [JobStatus.QUEUED, JobStatus.PROCESSING, JobStatus.COMPLETED],
    [JobStatus.QUEUED, JobStatus.PROCESSING, JobStatus.FAILED],
)


async def run_jobs(ctx, submissions):
    ctx.queue.start()
    try:
        ids = [ctx.service.submit_evaluation(*s) for s in submissions]
        await ctx.queue.join()
        return ids
    finally:
        await ctx.queue.shutdown()


def test_submitted_job_completes(build, store):
    ctx = build()

    [job_id] = asyncio.run(run_jobs(ctx, [("cv_1", "report_1", "Backend Engineer")]))

    job = ctx.service.get_job_status(job_id)
    assert job.status is JobStatus.COMPLETED
    assert 0.0 <= job.result.profile_match_score <= 1.0
    assert 1.0 <= job.result.deliverable_score <= 5.0
    assert job.error_message is None
    assert store.history[job_id] == LEGAL_HISTORIES[0]


def test_submission_returns_before_any_stage_runs(build, extractor, store):
    ctx = build()

    async def scenario():
        ctx.queue.start()
        job_id = ctx.service.submit_evaluation("cv_1", "report_1", "Backend Engineer")
        snapshot = ctx.service.get_job_status(job_id)
        calls_at_submit = list(extractor.calls)
        await ctx.queue.join()
        await ctx.queue.shutdown()
        return snapshot, calls_at_submit

    snapshot, calls_at_submit = asyncio.run(scenario())
    assert snapshot.status is JobStatus.QUEUED
    assert snapshot.result is None
    assert calls_at_submit == []


def test_failing_stage_marks_job_failed_with_message(build, transport, store):
    transport.responder = lambda _p: "no json here"
    ctx = build()

    [job_id] = asyncio.run(run_jobs(ctx, [("cv_1", "report_1", "Backend Engineer")]))

    job = ctx.service.get_job_status(job_id)
    assert job.status is JobStatus.FAILED
    assert job.result is None
    assert job.error_message.startswith("profile scoring failed:")
    assert store.history[job_id] == LEGAL_HISTORIES[1]


def test_concurrent_jobs_keep_their_own_results(build, extractor, transport, store):
    extractor.texts.update({
        "cv_a": "Candidate A: junior frontend developer",
        "report_a": "Report A",
        "cv_b": "Candidate B: senior backend engineer",
        "report_b": "Report B",
    })

    def responder(prompt):
        if "CANDIDATE CV" in prompt:
            score = 0.2 if "Candidate A" in prompt else 0.9
            return json.dumps({"profile_match_score": score, "profile_feedback": f"score {score}"})
        if "PROJECT REPORT" in prompt:
            score = 2.0 if "Report A" in prompt else 5.0
            return json.dumps({"deliverable_score": score, "deliverable_feedback": f"score {score}"})
        return "Summary."
    transport.responder = responder
    ctx = build(WORKER_CONCURRENCY=2)

    id_a, id_b = asyncio.run(run_jobs(ctx, [
        ("cv_a", "report_a", "Frontend"),
        ("cv_b", "report_b", "Backend"),
    ]))

    job_a = ctx.service.get_job_status(id_a)
    job_b = ctx.service.get_job_status(id_b)
    assert id_a != id_b
    assert job_a.status in TERMINAL and job_b.status in TERMINAL
    assert (job_a.result.profile_match_score, job_a.result.deliverable_score) == (0.2, 2.0)
    assert (job_b.result.profile_match_score, job_b.result.deliverable_score) == (0.9, 5.0)
    for jid in (id_a, id_b):
        assert store.history[jid] in LEGAL_HISTORIES


def test_worker_pool_bounds_concurrency(build, extractor, store):
    active = 0
    peak = 0
    original = extractor.extract_text

    async def slow_extract(ref):
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1
        return await original(ref)

    extractor.extract_text = slow_extract
    ctx = build(WORKER_CONCURRENCY=2)

    ids = asyncio.run(run_jobs(ctx, [("cv_1", "report_1", "t")] * 5))

    assert peak == 2
    assert all(ctx.service.get_job_status(i).status is JobStatus.COMPLETED for i in ids)


def test_retries_within_a_job_do_not_change_its_status(build, transport, store, sleep):
    transport.failures = [TransportError("503"), TransportError("503")]
    ctx = build()

    [job_id] = asyncio.run(run_jobs(ctx, [("cv_1", "report_1", "t")]))

    assert ctx.service.get_job_status(job_id).status is JobStatus.COMPLETED
    assert store.history[job_id] == LEGAL_HISTORIES[0]
    assert sleep.delays == [1.0, 2.0]


def test_submit_requires_a_running_queue(build, store):
    ctx = build()

    with pytest.raises(QueueUnavailableError):
        ctx.service.submit_evaluation("cv_1", "report_1", "t")
    assert store.jobs == {}

    with pytest.raises(QueueUnavailableError):
        ctx.queue.submit("job_x")


def test_submit_rejects_unknown_documents(build, store):
    ctx = build()

    async def scenario():
        ctx.queue.start()
        try:
            ctx.service.submit_evaluation("cv_missing", "report_1", "t")
        finally:
            await ctx.queue.shutdown()

    with pytest.raises(NotFoundError):
        asyncio.run(scenario())
    assert store.jobs == {}


def test_duplicate_submission_is_rejected(build, store):
    ctx = build()
    store.create_job("job_1", "cv_1", "report_1", "t")

    async def scenario():
        ctx.queue.start()
        ctx.queue.submit("job_1")
        with pytest.raises(DuplicateJobError):
            ctx.queue.submit("job_1")
        await ctx.queue.join()
        await ctx.queue.shutdown()

    asyncio.run(scenario())
    assert store.history["job_1"] == LEGAL_HISTORIES[0]


def test_status_of_unknown_job(build):
    ctx = build()
    with pytest.raises(NotFoundError):
        ctx.service.get_job_status("job_missing")


def test_resume_pending_requeues_only_queued_jobs(build, store):
    store.create_job("job_queued", "cv_1", "report_1", "t")
    store.create_job("job_stuck", "cv_1", "report_1", "t")
    store.update_job_status("job_stuck", JobStatus.PROCESSING)
    ctx = build()

    async def scenario():
        ctx.queue.start()
        resumed = ctx.service.resume_pending()
        await ctx.queue.join()
        await ctx.queue.shutdown()
        return resumed

    assert asyncio.run(scenario()) == 1
    assert store.get_job("job_queued").status is JobStatus.COMPLETED
    assert store.get_job("job_stuck").status is JobStatus.PROCESSING


def test_finished_jobs_are_forgotten_by_the_queue(build, store):
    ctx = build()
    store.create_job("job_1", "cv_1", "report_1", "t")

    async def scenario():
        ctx.queue.start()
        ids = [ctx.service.submit_evaluation("cv_1", "report_1", "t") for _ in range(10)]
        ctx.queue.submit("job_1")
        await ctx.queue.join()
        remaining = set(ctx.queue._submitted)
        # a finished id may be submitted again; the worker skips it
        ctx.queue.submit("job_1")
        await ctx.queue.join()
        await ctx.queue.shutdown()
        return ids, remaining

    ids, remaining = asyncio.run(scenario())
    assert remaining == set()
    assert all(store.get_job(i).status is JobStatus.COMPLETED for i in ids)
    assert store.history["job_1"] == LEGAL_HISTORIES[0]


def test_failed_job_message_names_the_stage_for_unexpected_errors(build, context_provider):
    context_provider.failures = [KeyError("data")]
    ctx = build()

    [job_id] = asyncio.run(run_jobs(ctx, [("cv_1", "report_1", "t")]))

    job = ctx.service.get_job_status(job_id)
    assert job.status is JobStatus.FAILED
    assert job.error_message == "context retrieval failed: 'data'"
