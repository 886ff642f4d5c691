import asyncio

import pytest

from songbird.config import Config
from songbird.exceptions import DownloadError, OutputResolutionError
from songbird.jobs.outputs import CONVERSION_OUTPUT_POLICY_V1
from songbird.jobs.poller import JobPoller, PollReason
from songbird.models import EventResponse, Job, JobKind, JobStatus
from tests.fakes import (
    FETCH_FAILURE,
    FakeBackend,
    captioner_event,
    conversion_event,
    now_in_nanoseconds,
)

STEPS = ["step_1", "step_2", "step_3", "step_4", "step_5"]


def conversion_job(event_id: str = "evt-1") -> Job:
    return Job(event_id=event_id, kind=JobKind.CONVERSION)


async def test_conversion_succeeds(poller: JobPoller, fake_backend: FakeBackend):
    fake_backend.script(
        "evt-1",
        {},
        conversion_event(STEPS[:1]),
        conversion_event(STEPS[:3]),
        conversion_event(STEPS),
    )
    job = conversion_job()

    outcome = await poller.poll(job)

    assert outcome.succeeded
    assert outcome.reason == PollReason.COMPLETED
    assert outcome.attempts == 4
    assert job.status == JobStatus.SUCCEEDED

    outputs = await poller.resolve_conversion_outputs("evt-1", outcome.event)
    assert outputs.source_audio_url == "https://cdn.test/jobs/step_5/normalized_orig.flac"
    assert outputs.converted_audio_url == "https://cdn.test/jobs/step_5/normalized_vc.flac"
    assert outputs.origin_url == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
    assert outputs.model_label == "LadyGaga"
    assert outputs.model_display_label == "Gen Kaka"
    assert outputs.policy_version == CONVERSION_OUTPUT_POLICY_V1.version
    assert sorted(fake_backend.downloads) == [
        "/jobs/step_5/normalized_orig.flac",
        "/jobs/step_5/normalized_vc.flac",
    ]


async def test_outputs_fall_back_without_normalized_files(poller: JobPoller, fake_backend: FakeBackend):
    # A 4 step graph declared by the backend, without the normalize step.
    fake_backend.script("evt-1", conversion_event(STEPS[:4], total=4))

    outcome = await poller.poll(conversion_job())
    outputs = await poller.resolve_conversion_outputs("evt-1", outcome.event)

    assert outcome.succeeded
    assert outputs.source_audio_url == "https://cdn.test/jobs/step_1/trim_cut_result.wav"
    assert outputs.converted_audio_url == "https://cdn.test/jobs/step_4/merged_result.wav"


async def test_missing_outputs(poller: JobPoller):
    event = EventResponse.model_validate(conversion_event(["step_2", "step_3"], total=2))

    with pytest.raises(OutputResolutionError):
        await poller.resolve_conversion_outputs("evt-1", event)


async def test_download_failure_propagates(poller: JobPoller, fake_backend: FakeBackend):
    fake_backend.fail_downloads = True
    event = EventResponse.model_validate(conversion_event(STEPS))

    with pytest.raises(DownloadError):
        await poller.resolve_conversion_outputs("evt-1", event)


async def test_exception_fails_even_when_complete(poller: JobPoller, fake_backend: FakeBackend):
    fake_backend.script("evt-1", conversion_event(STEPS, exception={"type": "CUDA out of memory"}))
    job = conversion_job()

    outcome = await poller.poll(job)

    assert outcome.status == JobStatus.FAILED
    assert outcome.reason == PollReason.EXCEPTION
    assert job.status == JobStatus.FAILED
    assert fake_backend.downloads == []


async def test_stale_job_is_ambiguous(poller: JobPoller, fake_backend: FakeBackend):
    ten_minutes_ago = now_in_nanoseconds() - 10 * 60 * 1_000_000_000
    fake_backend.script("evt-1", conversion_event(STEPS[:2], start_time=ten_minutes_ago))

    outcome = await poller.poll(conversion_job())

    assert outcome.status == JobStatus.AMBIGUOUS
    assert outcome.reason == PollReason.STALE
    assert outcome.attempts == 1


async def test_completed_job_is_never_stale(poller: JobPoller, fake_backend: FakeBackend):
    ten_minutes_ago = now_in_nanoseconds() - 10 * 60 * 1_000_000_000
    fake_backend.script("evt-1", conversion_event(STEPS, start_time=ten_minutes_ago))

    outcome = await poller.poll(conversion_job())

    assert outcome.succeeded


async def test_unregistered_job_is_ambiguous(poller: JobPoller, fake_backend: FakeBackend, config: Config):
    outcome = await poller.poll(conversion_job("never-submitted"))

    assert outcome.status == JobStatus.AMBIGUOUS
    assert outcome.reason == PollReason.NOT_REGISTERED
    assert outcome.attempts == config.max_empty_attempts
    assert len(fake_backend.fetches) == config.max_empty_attempts


async def test_empty_responses_must_be_consecutive(poller: JobPoller, fake_backend: FakeBackend):
    fake_backend.script(
        "evt-1",
        *([{}] * 7),
        conversion_event(STEPS[:1]),
        *([{}] * 7),
        conversion_event(STEPS),
    )

    outcome = await poller.poll(conversion_job())

    assert outcome.succeeded
    assert outcome.attempts == 16


async def test_fetch_error_fails_the_job(poller: JobPoller, fake_backend: FakeBackend):
    fake_backend.script("evt-1", conversion_event(STEPS[:1]), FETCH_FAILURE)

    outcome = await poller.poll(conversion_job())

    assert outcome.status == JobStatus.FAILED
    assert outcome.reason == PollReason.FETCH_ERROR
    assert outcome.error
    assert len(fake_backend.fetches) == 2


async def test_progress_and_sleeps(backend, config: Config, fake_backend: FakeBackend):
    sleeps: list[float] = []

    async def sleep(seconds: float) -> None:
        sleeps.append(seconds)

    config = config.model_copy(update={"poll_interval_seconds": 5, "settle_delay_seconds": 1})
    poller = JobPoller(backend, config, sleep=sleep)
    fake_backend.script("evt-1", conversion_event(STEPS[:1]), conversion_event(STEPS[:2]), conversion_event(STEPS))
    progress: list[int] = []

    outcome = await poller.poll(conversion_job(), on_progress=lambda job, attempts: progress.append(attempts))

    assert outcome.succeeded
    assert progress == [1, 2]
    assert sleeps == [1, 5, 5]


async def test_staleness_uses_the_clock(backend, config: Config, fake_backend: FakeBackend):
    start_time = 1_700_000_000 * 1_000_000_000
    start_ms = start_time / 1_000_000
    fake_backend.script("evt-1", conversion_event(STEPS[:1], start_time=start_time))

    fresh = JobPoller(backend, config, clock=lambda: start_ms + 4 * 60 * 1000)
    event = await backend.fetch_event("evt-1")
    assert fresh.assess(JobKind.CONVERSION, event) == (JobStatus.PROCESSING, None)

    stale = JobPoller(backend, config, clock=lambda: start_ms + 6 * 60 * 1000)
    assert stale.assess(JobKind.CONVERSION, event) == (JobStatus.AMBIGUOUS, PollReason.STALE)


NO_START_TIME = {
    "jobs": [{"job_id": "step_1"}, {"job_id": "step_2"}],
    "results": {},
    "states": [{}],
    "start_time": None,
}


@pytest.mark.parametrize("kind", [JobKind.CONVERSION, JobKind.CAPTIONER])
@pytest.mark.parametrize("start_time", [None, 0])
async def test_missing_start_time_ends_as_stale(poller: JobPoller, fake_backend: FakeBackend, kind, start_time):
    fake_backend.script("evt-1", {**NO_START_TIME, "start_time": start_time})

    outcome = await asyncio.wait_for(poller.poll(Job(event_id="evt-1", kind=kind)), timeout=2)

    assert outcome.status == JobStatus.AMBIGUOUS
    assert outcome.reason == PollReason.STALE
    assert outcome.attempts == 1


async def test_missing_start_time_does_not_hide_completion(poller: JobPoller):
    event = EventResponse.model_validate({**conversion_event(STEPS), "start_time": None})

    assert poller.assess(JobKind.CONVERSION, event) == (JobStatus.SUCCEEDED, PollReason.COMPLETED)


async def test_captioner_waits_for_its_result(poller: JobPoller, fake_backend: FakeBackend):
    fake_backend.script("evt-1", captioner_event(ready=False), captioner_event(ready=True))
    job = Job(event_id="evt-1", kind=JobKind.CAPTIONER)

    outcome = await poller.poll(job)
    assert outcome.succeeded
    assert outcome.attempts == 2

    outputs = await poller.resolve_captioner_outputs("evt-1", outcome.event)
    assert outputs.embed_url == "https://www.youtube.com/embed/dQw4w9WgXcQ"
    assert [(f.label, f.download_url) for f in outputs.files] == [
        ("en", "https://cdn.test/jobs/captioner/en.srt"),
        ("ja", "https://cdn.test/jobs/captioner/ja.srt"),
    ]
