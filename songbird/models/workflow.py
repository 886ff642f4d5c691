"""Voice conversion workflow: the five-step job graph the backend executes."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from songbird.models.catalog import VoiceConversionModel
from songbird.utils import format_seconds

TARGET_LUFS = -14
TRUE_PEAK = -2


class ConversionStep(str, Enum):
    TRIM = "step_1"
    SEPARATE = "step_2"
    CONVERT = "step_3"
    MERGE = "step_4"
    NORMALIZE = "step_5"


class WorkflowResponse(BaseModel):
    event_id: str
    status: str


class WorkflowAdder(BaseModel):
    source_url: str
    start_time: float = 0
    end_time: float = 60
    pitch: int = 0
    voice_conversion_model: VoiceConversionModel = "伍佰"


class FileItem(BaseModel):
    label: str
    path: str


class WorkflowStep(BaseModel):
    relation_result_files: dict[str, str] = Field(default_factory=dict)
    file_list: list[FileItem] = Field(default_factory=list)
    job_id: str
    params: dict[str, Any]
    worker_name: str
    # Result keys this step publishes, as later steps reference them.
    outputs: list[str] = Field(default_factory=list, exclude=True)


class Workflow(BaseModel):
    jobs: list[WorkflowStep]


def _result_key(step: ConversionStep, name: str) -> str:
    return f"{step.value}__{name}"


def init_workflow(adder: WorkflowAdder) -> Workflow:
    start_index = format_seconds(adder.start_time, include_hours=True)
    end_index = format_seconds(adder.end_time, include_hours=True)

    model = adder.voice_conversion_model
    vc_result = _result_key(ConversionStep.CONVERT, f"{model}_key_{adder.pitch}")

    return Workflow(
        jobs=[
            WorkflowStep(
                file_list=[FileItem(label="origin", path=adder.source_url)],
                job_id=ConversionStep.TRIM.value,
                params={
                    "file": ["origin"],
                    "output_file": {"trim_cut_result": "trim_cut_result.wav"},
                    "start_index": start_index,
                    "end_index": end_index,
                    "usage": "trim_cut",
                },
                worker_name="transformer",
                outputs=[_result_key(ConversionStep.TRIM, "trim_cut_result")],
            ),
            WorkflowStep(
                relation_result_files={"trim_cut_result": _result_key(ConversionStep.TRIM, "trim_cut_result")},
                job_id=ConversionStep.SEPARATE.value,
                params={
                    "file": "trim_cut_result",
                    "is_overlapadd": True,
                    "original_sr": False,
                    "stem": ["vocals"],
                },
                worker_name="svs",
                outputs=[
                    _result_key(ConversionStep.SEPARATE, "vocals"),
                    _result_key(ConversionStep.SEPARATE, "accompaniment"),
                ],
            ),
            WorkflowStep(
                relation_result_files={"vocals": _result_key(ConversionStep.SEPARATE, "vocals")},
                job_id=ConversionStep.CONVERT.value,
                params={
                    "enable_pitch_correction": False,
                    "f0_predictor": "rmvpe",
                    "file": "vocals",
                    "mode": "sing",
                    "speakers": [model],
                    "speakers_pitch_adjustment": {model: [adder.pitch]},
                },
                worker_name="vc",
                outputs=[vc_result],
            ),
            WorkflowStep(
                relation_result_files={
                    "vc_result": vc_result,
                    "accompaniment": _result_key(ConversionStep.SEPARATE, "accompaniment"),
                },
                job_id=ConversionStep.MERGE.value,
                params={
                    "file": ["vc_result", "accompaniment"],
                    "usage": "merge_audio_files",
                    "merge_option": "stereo_audio",
                    "output_file": {"merged_result": "merged_result.wav"},
                },
                worker_name="transformer",
                outputs=[_result_key(ConversionStep.MERGE, "merged_result")],
            ),
            WorkflowStep(
                relation_result_files={
                    "vc_result": _result_key(ConversionStep.MERGE, "merged_result"),
                    "orig_result": _result_key(ConversionStep.TRIM, "trim_cut_result"),
                },
                job_id=ConversionStep.NORMALIZE.value,
                params={
                    "file": ["vc_result", "orig_result"],
                    "usage": "audio_normalize",
                    "target_lufs": TARGET_LUFS,
                    "true_peak": TRUE_PEAK,
                    "output_file": {
                        "normalized_vc": "normalized_vc.flac",
                        "normalized_orig": "normalized_orig.flac",
                    },
                },
                worker_name="transformer",
                outputs=[
                    _result_key(ConversionStep.NORMALIZE, "normalized_vc"),
                    _result_key(ConversionStep.NORMALIZE, "normalized_orig"),
                ],
            ),
        ]
    )
