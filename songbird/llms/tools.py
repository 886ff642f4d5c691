"""The tools the model may call, and their handlers.

A handler receives the shared context, its validated arguments and the
turn's display stream. It may push intermediate fragments to the stream and
returns a ``ToolOutcome``: the structured result recorded for the model and
the final fragment shown to the user.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field
from pydantic_ai.tools import ToolDefinition

from songbird import render
from songbird.backend.client import BackendClient
from songbird.config import Config
from songbird.jobs.poller import JobPoller
from songbird.models.job import Job, JobKind
from songbird.render import Fragment
from songbird.streamer import Streamable
from songbird.youtube import YoutubeClient, extract_youtube_video_id, get_youtube_embed_link

STILL_PROCESSING_MESSAGE = "It may take more than one minute to complete"


@dataclass
class ToolContext:
    config: Config
    backend: BackendClient
    poller: JobPoller
    youtube: YoutubeClient


class ToolOutcome(BaseModel):
    result: dict[str, Any]
    display: Fragment


ToolHandler = Callable[[ToolContext, Any, Streamable[Fragment]], Awaitable[ToolOutcome]]


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    args_model: type[BaseModel]
    handler: ToolHandler

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.description,
            parameters_json_schema=self.args_model.model_json_schema(),
        )


class YoutubeLengthArgs(BaseModel):
    youtube_url: str = Field(description="The youtube video url")


class VoiceConversionUIArgs(BaseModel):
    ai_voice_model: str = Field(description="The ai voice model. e.g. BrunoMars, LadyGaga")
    youtube_url: str = Field(description="The youtube video url")


class CaptionerUIArgs(BaseModel):
    youtube_url: str = Field(description="The youtube video url")


class ConversionEventArgs(BaseModel):
    conversion_id: str = Field(description="The voice conversion id")


class CaptionerEventArgs(BaseModel):
    event_id: str = Field(description="The captioner worker event id")


def _still_processing(ui: Streamable[Fragment]):
    def on_progress(job: Job, attempts: int) -> None:
        ui.update(render.processing(STILL_PROCESSING_MESSAGE))

    return on_progress


async def get_youtube_length(ctx: ToolContext, args: YoutubeLengthArgs, ui: Streamable[Fragment]) -> ToolOutcome:
    ui.update(render.skeleton())

    video_id = extract_youtube_video_id(args.youtube_url)
    if not video_id:
        return ToolOutcome(
            result={"youtube_url": args.youtube_url, "invalid_url": True},
            display=render.invalid_youtube_url(),
        )

    duration = await ctx.youtube.fetch_duration(video_id)
    return ToolOutcome(
        result={"youtube_url": args.youtube_url, "duration_in_seconds": duration},
        display=render.youtube_card(get_youtube_embed_link(args.youtube_url), duration),
    )


async def show_voice_conversion_ui(
    ctx: ToolContext, args: VoiceConversionUIArgs, ui: Streamable[Fragment]
) -> ToolOutcome:
    return ToolOutcome(
        result=args.model_dump(),
        display=render.conversion_form(args.ai_voice_model, args.youtube_url),
    )


async def show_captioner_worker_ui(ctx: ToolContext, args: CaptionerUIArgs, ui: Streamable[Fragment]) -> ToolOutcome:
    return ToolOutcome(result=args.model_dump(), display=render.captioner_form(args.youtube_url))


async def get_conversion_event(ctx: ToolContext, args: ConversionEventArgs, ui: Streamable[Fragment]) -> ToolOutcome:
    ui.update(render.processing())

    job = Job(event_id=args.conversion_id, kind=JobKind.CONVERSION)
    outcome = await ctx.poller.poll(job, on_progress=_still_processing(ui))
    if not outcome.succeeded:
        return ToolOutcome(
            result={
                "conversion_id": args.conversion_id,
                "status": outcome.status.value,
                "reason": outcome.reason.value,
            },
            display=render.error_card(args.conversion_id, outcome.status.value, outcome.reason.value),
        )

    outputs = await ctx.poller.resolve_conversion_outputs(args.conversion_id, outcome.event)
    result = {"status": outcome.status.value, **outputs.model_dump()}
    return ToolOutcome(result=result, display=render.conversion_result(result))


async def get_captioner_worker_event(
    ctx: ToolContext, args: CaptionerEventArgs, ui: Streamable[Fragment]
) -> ToolOutcome:
    ui.update(render.processing())

    job = Job(event_id=args.event_id, kind=JobKind.CAPTIONER)
    outcome = await ctx.poller.poll(job, on_progress=_still_processing(ui))
    if not outcome.succeeded:
        return ToolOutcome(
            result={"event_id": args.event_id, "status": outcome.status.value, "reason": outcome.reason.value},
            display=render.error_card(args.event_id, outcome.status.value, outcome.reason.value),
        )

    outputs = await ctx.poller.resolve_captioner_outputs(args.event_id, outcome.event)
    result = {"status": outcome.status.value, **outputs.model_dump()}
    return ToolOutcome(result=result, display=render.captioner_result(result))


TOOLS: dict[str, Tool] = {
    tool.name: tool
    for tool in [
        Tool(
            name="get_youtube_length",
            description="Fetch youtube video length in seconds.",
            args_model=YoutubeLengthArgs,
            handler=get_youtube_length,
        ),
        Tool(
            name="show_voice_conversion_ui",
            description="Show voice conversion ui. Use this if the user wants to do voice conversion.",
            args_model=VoiceConversionUIArgs,
            handler=show_voice_conversion_ui,
        ),
        Tool(
            name="show_captioner_worker_ui",
            description="Show captioner worker ui. Use this if the user wants to add captioner worker.",
            args_model=CaptionerUIArgs,
            handler=show_captioner_worker_ui,
        ),
        Tool(
            name="get_conversion_event",
            description="Fetch voice conversion result by conversion id and show the conversion result.",
            args_model=ConversionEventArgs,
            handler=get_conversion_event,
        ),
        Tool(
            name="get_captioner_worker_event",
            description="Fetch captioner worker event result by event id.",
            args_model=CaptionerEventArgs,
            handler=get_captioner_worker_event,
        ),
    ]
}
