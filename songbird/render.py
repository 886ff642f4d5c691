"""Renderable fragments and the projection of AIState into UIState.

Fragments describe *what* to show; styling belongs to whatever client
renders them.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from songbird.models.catalog import (
    SUPPORTED_DETECT_LANGUAGES,
    SUPPORTED_TRANSLATE_TARGET_LANGUAGES,
    VOICE_CONVERSION_MODELS,
    voice_conversion_model_to_label,
)
from songbird.state import AIState, ToolResultContent
from songbird.youtube import get_youtube_embed_link


class Fragment(BaseModel):
    kind: str
    text: str | None = None
    props: dict[str, Any] = Field(default_factory=dict)


class UIMessage(BaseModel):
    id: str
    display: Fragment | None = None


def spinner_message() -> Fragment:
    return Fragment(kind="spinner")


def skeleton() -> Fragment:
    return Fragment(kind="skeleton")


def processing(message: str | None = None, show_avatar: bool = True) -> Fragment:
    return Fragment(kind="processing", text=message or "Processing....", props={"show_avatar": show_avatar})


def bot_message(content: str) -> Fragment:
    return Fragment(kind="bot_message", text=content)


def bot_card(text: str, **props: Any) -> Fragment:
    return Fragment(kind="bot_card", text=text, props=props)


def user_message(content: str) -> Fragment:
    return Fragment(kind="user_message", text=content)


def system_message(content: str) -> Fragment:
    return Fragment(kind="system_message", text=content)


def error_card(event_id: str, status: str = "failed", reason: str | None = None) -> Fragment:
    # Failed and ambiguous jobs share one wording; status and reason travel in props.
    return Fragment(
        kind="error",
        text=f"Failed to fetch conversion event with id: {event_id}",
        props={"event_id": event_id, "status": status, "reason": reason},
    )


def tool_error(tool_name: str) -> Fragment:
    return Fragment(kind="error", text=f"Something went wrong while running {tool_name}", props={"tool_name": tool_name})


def invalid_youtube_url() -> Fragment:
    return bot_card("Invalid youtube url")


def youtube_card(embed_url: str, duration: int) -> Fragment:
    return Fragment(
        kind="youtube",
        text=f"youtube duration: {duration}",
        props={"embed_url": embed_url, "duration_in_seconds": duration},
    )


def conversion_form(ai_voice_model: str | None = None, youtube_url: str | None = None) -> Fragment:
    return Fragment(
        kind="conversion_form",
        props={
            "status": "requires_action",
            "voice_conversion_models": [
                {"key": model, "label": voice_conversion_model_to_label(model)} for model in VOICE_CONVERSION_MODELS
            ],
            "ai_voice_model": ai_voice_model,
            "youtube_url": youtube_url,
        },
    )


def captioner_form(youtube_url: str | None = None) -> Fragment:
    return Fragment(
        kind="captioner_form",
        props={
            "status": "requires_action",
            "youtube_url": youtube_url,
            "auto_detect_languages": [lang.model_dump() for lang in SUPPORTED_DETECT_LANGUAGES],
            "speech_translate_target_languages": [
                lang.model_dump() for lang in SUPPORTED_TRANSLATE_TARGET_LANGUAGES
            ],
        },
    )


def fetch_result_prompt(event_id: str, text: str, input_message: str) -> Fragment:
    """A card offering to ask for the job result; ``input_message`` is what gets submitted."""
    return Fragment(
        kind="fetch_result",
        text=text,
        props={"event_id": event_id, "input_message": input_message},
    )


def conversion_result(result: dict[str, Any]) -> Fragment:
    return Fragment(kind="conversion_result", props=result)


def captioner_result(result: dict[str, Any]) -> Fragment:
    return Fragment(kind="captioner_result", props=result)


def _youtube_length_result(result: dict[str, Any]) -> Fragment:
    if result.get("invalid_url"):
        return invalid_youtube_url()
    return youtube_card(get_youtube_embed_link(result.get("youtube_url", "")), result.get("duration_in_seconds", 0))


_TOOL_RESULT_RENDERERS = {
    "show_voice_conversion_ui": lambda r: conversion_form(r.get("ai_voice_model"), r.get("youtube_url")),
    "show_captioner_worker_ui": lambda r: captioner_form(r.get("youtube_url")),
    "get_youtube_length": _youtube_length_result,
    "get_conversion_event": conversion_result,
    "get_captioner_worker_event": captioner_result,
}


def render_tool_result(part: ToolResultContent) -> Fragment | None:
    if "error" in part.result:
        return tool_error(part.tool_name)
    if part.result.get("status") in ("failed", "ambiguous"):
        event_id = part.result.get("conversion_id") or part.result.get("event_id") or ""
        return error_card(event_id, part.result["status"], part.result.get("reason"))
    renderer = _TOOL_RESULT_RENDERERS.get(part.tool_name)
    return renderer(part.result) if renderer else None


def ui_state_from_ai_state(ai_state: AIState) -> list[UIMessage]:
    """Rebuild the display list from the message log. System messages are never shown."""
    ui_state: list[UIMessage] = []
    visible = [m for m in ai_state.messages if m.role != "system"]
    for index, message in enumerate(visible):
        display: Fragment | None = None
        if message.role == "tool" and not isinstance(message.content, str):
            rendered = [
                render_tool_result(part) for part in message.content if isinstance(part, ToolResultContent)
            ]
            display = next((f for f in rendered if f is not None), None)
        elif message.role == "user" and isinstance(message.content, str):
            display = user_message(message.content)
        elif message.role == "assistant" and isinstance(message.content, str):
            display = bot_message(message.content)
        ui_state.append(UIMessage(id=f"{ai_state.chat_id}-{index}", display=display))
    return ui_state
