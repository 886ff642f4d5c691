"""Where the final files of a finished job live.

A conversion may finish without every step having published files, so each
output is looked up through an ordered list of fallbacks. The order is part
of the backend contract; bump ``version`` when changing it.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field

from songbird.models.event import EventResponse
from songbird.models.workflow import ConversionStep

CAPTIONER_RESULT_KEY = "captioner_job"


@dataclass(frozen=True)
class FileSelector:
    step: str
    index: int

    def select(self, event: EventResponse) -> str | None:
        result = event.step(self.step)
        if result is None or len(result.files) <= self.index:
            return None
        return result.files[self.index].path or None


@dataclass(frozen=True)
class OutputResolutionPolicy:
    version: int
    source_audio: tuple[FileSelector, ...]
    converted_audio: tuple[FileSelector, ...]

    @staticmethod
    def first_match(selectors: tuple[FileSelector, ...], event: EventResponse) -> str | None:
        for selector in selectors:
            path = selector.select(event)
            if path:
                return path
        return None

    def source_audio_path(self, event: EventResponse) -> str | None:
        return self.first_match(self.source_audio, event)

    def converted_audio_path(self, event: EventResponse) -> str | None:
        return self.first_match(self.converted_audio, event)


# Normalized files first (step_5 publishes [normalized_vc, normalized_orig]),
# then the trimmed original and the un-normalized merge.
CONVERSION_OUTPUT_POLICY_V1 = OutputResolutionPolicy(
    version=1,
    source_audio=(
        FileSelector(ConversionStep.NORMALIZE.value, 1),
        FileSelector(ConversionStep.TRIM.value, 0),
    ),
    converted_audio=(
        FileSelector(ConversionStep.NORMALIZE.value, 0),
        FileSelector(ConversionStep.MERGE.value, 0),
    ),
)


def model_label(event: EventResponse) -> str:
    result = event.step(ConversionStep.CONVERT.value)
    if result is None or not result.files:
        return ""
    return result.files[0].label.split("_")[0]


class ConversionOutputs(BaseModel):
    conversion_id: str
    origin_url: str
    model_label: str
    model_display_label: str
    source_audio_url: str
    converted_audio_url: str
    policy_version: int


class CaptionFile(BaseModel):
    label: str
    download_url: str


class CaptionerOutputs(BaseModel):
    event_id: str
    youtube_url: str
    embed_url: str
    files: list[CaptionFile] = Field(default_factory=list)
