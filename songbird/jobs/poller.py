"""Polls backend jobs until they succeed, fail or can no longer be judged.

Per job: pending -> processing -> succeeded | failed | ambiguous.

- An empty status means the backend has not registered the job yet; after
  ``max_empty_attempts`` consecutive empty answers the job is ambiguous.
- Any step state carrying an exception fails the job, whatever the progress.
- A job is complete when every declared step has a result (captioner jobs
  when their result key is present).
- An incomplete job whose start time is older than ``timeout_in_minutes`` is
  ambiguous. A job without a start time counts as stale.
- A failed status fetch fails the job at once; nothing is retried.

There is no cancel primitive: a caller stops polling by dropping the task.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from enum import Enum

from pydantic import BaseModel

from songbird.backend.client import BackendClient
from songbird.config import Config
from songbird.exceptions import OutputResolutionError, PollError
from songbird.jobs.outputs import (
    CAPTIONER_RESULT_KEY,
    CONVERSION_OUTPUT_POLICY_V1,
    CaptionerOutputs,
    CaptionFile,
    ConversionOutputs,
    OutputResolutionPolicy,
    model_label,
)
from songbird.log import logger
from songbird.models.catalog import voice_conversion_model_to_label
from songbird.models.event import EventResponse
from songbird.models.job import Job, JobKind, JobStatus
from songbird.utils import (
    convert_nano_timestamp_to_milli_timestamp,
    is_timestamp_difference_beyond_threshold,
    now_in_milliseconds,
)
from songbird.youtube import get_youtube_embed_link

ProgressCallback = Callable[[Job, int], None]

_REQUIRED_RESULT_KEYS: dict[JobKind, tuple[str, ...]] = {
    JobKind.CONVERSION: (),
    JobKind.CAPTIONER: (CAPTIONER_RESULT_KEY,),
}


class PollReason(str, Enum):
    COMPLETED = "completed"
    EXCEPTION = "exception"
    STALE = "stale"
    NOT_REGISTERED = "not_registered"
    FETCH_ERROR = "fetch_error"


class PollOutcome(BaseModel):
    job: Job
    status: JobStatus
    reason: PollReason
    attempts: int
    event: EventResponse | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == JobStatus.SUCCEEDED


class JobPoller:
    def __init__(
        self,
        backend: BackendClient,
        config: Config,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = now_in_milliseconds,
        policy: OutputResolutionPolicy = CONVERSION_OUTPUT_POLICY_V1,
    ):
        self.backend = backend
        self.config = config
        self.policy = policy
        self._sleep = sleep
        self._clock = clock

    def is_complete(self, kind: JobKind, event: EventResponse) -> bool:
        required = _REQUIRED_RESULT_KEYS[kind]
        if required:
            return all(event.step(key) is not None for key in required)
        return event.total_steps > 0 and event.finished_steps == event.total_steps

    def is_stale(self, event: EventResponse) -> bool:
        # A missing start time reads as the epoch.
        started_at = convert_nano_timestamp_to_milli_timestamp(event.start_time or 0)
        return is_timestamp_difference_beyond_threshold(
            started_at, self._clock(), threshold_in_minutes=self.config.timeout_in_minutes
        )

    def assess(self, kind: JobKind, event: EventResponse) -> tuple[JobStatus, PollReason | None]:
        """Judge a non-empty status response."""
        if event.has_failed:
            return JobStatus.FAILED, PollReason.EXCEPTION
        if self.is_complete(kind, event):
            return JobStatus.SUCCEEDED, PollReason.COMPLETED
        if self.is_stale(event):
            return JobStatus.AMBIGUOUS, PollReason.STALE
        return JobStatus.PROCESSING, None

    async def poll(self, job: Job, on_progress: ProgressCallback | None = None) -> PollOutcome:
        """Poll ``job`` until it reaches a terminal status.

        ``on_progress`` is called after every poll that did not end the job.
        """
        job.status = JobStatus.PROCESSING
        await self._sleep(self.config.settle_delay_seconds)

        attempts = 0
        empty_attempts = 0
        while True:
            attempts += 1
            try:
                event = await self.backend.fetch_event(job.event_id)
            except PollError as e:
                logger.warning(f"Polling job {job.event_id} failed: {e}")
                return self._finish(job, JobStatus.FAILED, PollReason.FETCH_ERROR, attempts, error=str(e))

            if event.is_empty:
                empty_attempts += 1
                if empty_attempts >= self.config.max_empty_attempts:
                    return self._finish(job, JobStatus.AMBIGUOUS, PollReason.NOT_REGISTERED, attempts)
            else:
                empty_attempts = 0
                status, reason = self.assess(job.kind, event)
                if status.is_terminal:
                    return self._finish(job, status, reason, attempts, event=event)

            if on_progress:
                on_progress(job, attempts)
            await self._sleep(self.config.poll_interval_seconds)

    def _finish(
        self,
        job: Job,
        status: JobStatus,
        reason: PollReason,
        attempts: int,
        event: EventResponse | None = None,
        error: str | None = None,
    ) -> PollOutcome:
        job.status = status
        logger.info(f"Job {job.event_id} finished as {status.value} ({reason.value}) after {attempts} polls")
        return PollOutcome(job=job, status=status, reason=reason, attempts=attempts, event=event, error=error)

    async def resolve_conversion_outputs(self, conversion_id: str, event: EventResponse) -> ConversionOutputs:
        source_path = self.policy.source_audio_path(event)
        converted_path = self.policy.converted_audio_path(event)
        if not source_path or not converted_path:
            raise OutputResolutionError(f"Conversion {conversion_id} finished without source or converted audio")

        # The only place two downloads run side by side.
        source, converted = await asyncio.gather(
            self.backend.download_file(source_path),
            self.backend.download_file(converted_path),
        )
        label = model_label(event)
        return ConversionOutputs(
            conversion_id=conversion_id,
            origin_url=event.origin_path,
            model_label=label,
            model_display_label=voice_conversion_model_to_label(label),
            source_audio_url=source.download_url,
            converted_audio_url=converted.download_url,
            policy_version=self.policy.version,
        )

    async def resolve_captioner_outputs(self, event_id: str, event: EventResponse) -> CaptionerOutputs:
        result = event.step(CAPTIONER_RESULT_KEY)
        if result is None:
            raise OutputResolutionError(f"Captioner event {event_id} has no {CAPTIONER_RESULT_KEY} result")

        files = []
        for file in result.files:
            download = await self.backend.download_file(file.path)
            files.append(CaptionFile(label=file.label, download_url=download.download_url))

        youtube_url = event.origin_path
        return CaptionerOutputs(
            event_id=event_id,
            youtube_url=youtube_url,
            embed_url=get_youtube_embed_link(youtube_url),
            files=files,
        )
