from __future__ import annotations

from pydantic import BaseModel, Field


class CaptionerWorkerAdder(BaseModel):
    file_path: str
    auto_detect_languages: list[str] = Field(default_factory=list)
    speech_translate_target_languages: list[str] = Field(default_factory=list)


class CaptionerFile(BaseModel):
    label: str
    path: str


class CaptionerParams(BaseModel):
    auto_detect_languages: list[str]
    file: str
    phrases_list: str
    speech_translate_target_languages: list[str]


class CaptionerWorker(BaseModel):
    file_list: list[CaptionerFile]
    params: CaptionerParams


def init_captioner_worker(adder: CaptionerWorkerAdder) -> CaptionerWorker:
    return CaptionerWorker(
        file_list=[CaptionerFile(label="speech", path=adder.file_path)],
        params=CaptionerParams(
            auto_detect_languages=list(adder.auto_detect_languages),
            file="speech",
            phrases_list="",
            speech_translate_target_languages=list(adder.speech_translate_target_languages),
        ),
    )
