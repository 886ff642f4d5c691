from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class JobKind(str, Enum):
    CONVERSION = "conversion"
    CAPTIONER = "captioner"


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    AMBIGUOUS = "ambiguous"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED, JobStatus.AMBIGUOUS)


class Job(BaseModel):
    """A backend job as tracked on our side.

    Created on submission (or when a result is requested for a known id);
    only the poller moves ``status`` forward.
    """

    event_id: str
    kind: JobKind
    source_params: dict[str, Any] = Field(default_factory=dict)
    status: JobStatus = JobStatus.PENDING
    # Status string the backend answered the submission with.
    backend_status: str | None = None
