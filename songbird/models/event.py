from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class JobFile(BaseModel):
    label: str = ""
    path: str


class StepResult(BaseModel):
    files: list[JobFile] = Field(default_factory=list)


class StepState(BaseModel):
    model_config = ConfigDict(extra="allow")

    exception: dict[str, Any] | str | None = None

    @property
    def has_exception(self) -> bool:
        return bool(self.exception)


class EventJob(BaseModel):
    model_config = ConfigDict(extra="allow")

    job_id: str | None = None
    files: list[JobFile] = Field(default_factory=list)


class EventResponse(BaseModel):
    """Status of a backend job. An empty object means the backend does not know the id yet."""

    model_config = ConfigDict(extra="allow")

    jobs: list[EventJob] | None = None
    results: dict[str, StepResult] | None = None
    states: list[StepState] | None = None
    start_time: int | None = None

    @property
    def is_empty(self) -> bool:
        return not self.model_fields_set and not self.model_extra

    @property
    def total_steps(self) -> int:
        return len(self.jobs or [])

    @property
    def finished_steps(self) -> int:
        return len(self.results or {})

    @property
    def has_failed(self) -> bool:
        return any(state.has_exception for state in self.states or [])

    @property
    def origin_path(self) -> str:
        if self.jobs and self.jobs[0].files:
            return self.jobs[0].files[0].path
        return ""

    def step(self, step_id: str) -> StepResult | None:
        return (self.results or {}).get(step_id)


class DownloadResponse(BaseModel):
    download_url: str
