"""HTTP client for the audio-processing backend."""

from __future__ import annotations

import httpx

from songbird.config import Config
from songbird.exceptions import DownloadError, PollError, SubmissionError
from songbird.log import logger
from songbird.models.event import DownloadResponse, EventResponse
from songbird.models.worker import CaptionerWorkerAdder, init_captioner_worker
from songbird.models.workflow import WorkflowAdder, WorkflowResponse, init_workflow


class BackendClient:
    """Thin wrapper around the workflow, worker, event and download endpoints.

    No call is retried here; the caller decides what a failure means.
    """

    def __init__(self, base_url: str, client: httpx.AsyncClient | None = None, timeout: float = 30):
        """Initialize the backend client.

        Args:
            base_url: The base URL of the backend.
            client: Optional pre-configured httpx client, mainly for tests.
            timeout: Request timeout in seconds when no client is given.
        """
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=timeout)
        logger.info(f"Initialized backend client with base URL: {self.base_url}")

    @classmethod
    def from_config(cls, config: Config) -> BackendClient:
        return cls(config.backend_endpoint, timeout=config.request_timeout_seconds)

    async def add_workflow(self, adder: WorkflowAdder) -> WorkflowResponse:
        """Submit a voice conversion workflow.

        Raises:
            SubmissionError: If the backend is unreachable or rejects the workflow.
        """
        url = f"{self.base_url}/workflow"
        body = init_workflow(adder).model_dump(mode="json")
        logger.info(f"Submitting workflow for {adder.source_url} with model {adder.voice_conversion_model}")
        try:
            response = await self.client.post(url, json=body)
            response.raise_for_status()
            workflow = WorkflowResponse.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as e:
            raise SubmissionError(f"Failed to submit workflow: {e}") from e
        logger.info(f"Created workflow with event id: {workflow.event_id}")
        return workflow

    async def add_captioner_worker(self, adder: CaptionerWorkerAdder) -> WorkflowResponse:
        """Submit a captioning job.

        Raises:
            SubmissionError: If the backend is unreachable or rejects the job.
        """
        url = f"{self.base_url}/worker/captioner"
        body = init_captioner_worker(adder).model_dump(mode="json")
        logger.info(f"Submitting captioner worker for {adder.file_path}")
        try:
            response = await self.client.post(url, json=body)
            response.raise_for_status()
            worker = WorkflowResponse.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as e:
            raise SubmissionError(f"Failed to submit captioner worker: {e}") from e
        logger.info(f"Created captioner worker with event id: {worker.event_id}")
        return worker

    async def fetch_event(self, event_id: str) -> EventResponse:
        """Fetch the current status of a job.

        Raises:
            PollError: If the status could not be fetched.
        """
        url = f"{self.base_url}/event/{event_id}"
        try:
            response = await self.client.get(url)
            response.raise_for_status()
            event = EventResponse.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as e:
            raise PollError(f"Failed to fetch event {event_id}: {e}") from e
        logger.debug(f"Fetched event {event_id}: {event.finished_steps}/{event.total_steps} steps finished")
        return event

    async def download_file(self, file_path: str) -> DownloadResponse:
        """Resolve a backend file path to a downloadable URL.

        Raises:
            DownloadError: If the path could not be resolved.
        """
        url = f"{self.base_url}/download"
        try:
            response = await self.client.post(url, json={"file_path": file_path})
            response.raise_for_status()
            return DownloadResponse.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as e:
            raise DownloadError(f"Failed to resolve download url for {file_path}: {e}") from e

    async def close(self) -> None:
        """Close the client."""
        logger.info("Closing backend client")
        await self.client.aclose()
