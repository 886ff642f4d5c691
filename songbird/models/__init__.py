from songbird.models.catalog import (
    SUPPORTED_DETECT_LANGUAGES,
    SUPPORTED_TRANSLATE_TARGET_LANGUAGES,
    VOICE_CONVERSION_MODELS,
    Language,
    voice_conversion_model_to_label,
)
from songbird.models.event import DownloadResponse, EventResponse, JobFile, StepResult, StepState
from songbird.models.job import Job, JobKind, JobStatus
from songbird.models.worker import CaptionerWorker, CaptionerWorkerAdder, init_captioner_worker
from songbird.models.workflow import (
    ConversionStep,
    Workflow,
    WorkflowAdder,
    WorkflowResponse,
    WorkflowStep,
    init_workflow,
)

__all__ = [
    "SUPPORTED_DETECT_LANGUAGES",
    "SUPPORTED_TRANSLATE_TARGET_LANGUAGES",
    "VOICE_CONVERSION_MODELS",
    "CaptionerWorker",
    "CaptionerWorkerAdder",
    "ConversionStep",
    "DownloadResponse",
    "EventResponse",
    "Job",
    "JobFile",
    "JobKind",
    "JobStatus",
    "Language",
    "StepResult",
    "StepState",
    "Workflow",
    "WorkflowAdder",
    "WorkflowResponse",
    "WorkflowStep",
    "init_captioner_worker",
    "init_workflow",
    "voice_conversion_model_to_label",
]
