from typing import Any, Literal

from pydantic import BaseModel, Field

from songbird.models.catalog import Language

ToolName = Literal[
    "get_youtube_length",
    "show_voice_conversion_ui",
    "show_captioner_worker_ui",
    "get_conversion_event",
    "get_captioner_worker_event",
]


class GetOptionsResponse(BaseModel):
    providers: list[str]
    voice_conversion_models: list[str]
    auto_detect_languages: list[Language]
    speech_translate_target_languages: list[Language]


class NewChat(BaseModel):
    chat_id: str


class ChatRequest(BaseModel):
    content: str


class ToolInvocationRequest(BaseModel):
    tool_name: ToolName
    args: dict[str, Any] = Field(default_factory=dict)
