from __future__ import annotations

from songbird.backend.client import BackendClient
from songbird.log import logger
from songbird.models.job import Job, JobKind
from songbird.models.worker import CaptionerWorkerAdder
from songbird.models.workflow import WorkflowAdder


class JobSubmitter:
    """Turns validated requests into backend jobs. Submission errors are not retried."""

    def __init__(self, backend: BackendClient):
        self.backend = backend

    async def submit_conversion(self, adder: WorkflowAdder) -> Job:
        response = await self.backend.add_workflow(adder)
        job = Job(
            event_id=response.event_id,
            kind=JobKind.CONVERSION,
            source_params=adder.model_dump(),
            backend_status=response.status,
        )
        logger.info(f"Conversion job {job.event_id} submitted with backend status {response.status}")
        return job

    async def submit_captioner(self, adder: CaptionerWorkerAdder) -> Job:
        response = await self.backend.add_captioner_worker(adder)
        job = Job(
            event_id=response.event_id,
            kind=JobKind.CAPTIONER,
            source_params=adder.model_dump(),
            backend_status=response.status,
        )
        logger.info(f"Captioner job {job.event_id} submitted with backend status {response.status}")
        return job
