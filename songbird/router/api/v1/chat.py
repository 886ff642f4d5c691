import json
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends
from sse_starlette.sse import EventSourceResponse

from songbird.models.worker import CaptionerWorkerAdder
from songbird.models.workflow import WorkflowAdder
from songbird.render import UIMessage
from songbird.router.params import ChatRequest, NewChat, ToolInvocationRequest
from songbird.router.controller.chat import (
    ChatController,
    StartedJob,
    StreamingUIMessage,
    get_chat_controller,
)
from songbird.state import AIState

router = APIRouter(
    tags=["chat"],
    prefix="/api/v1/chat",
)


async def message_events(message: StreamingUIMessage, event: str = "fragment") -> AsyncIterator[dict]:
    yield {"event": "message", "data": json.dumps({"id": message.id})}
    async for fragment in message.display:
        yield {"event": event, "data": fragment.model_dump_json()}


async def started_job_events(started: StartedJob) -> AsyncIterator[dict]:
    yield {"event": "job", "data": started.job.model_dump_json()}
    async for fragment in started.converting_ui:
        yield {"event": "converting", "data": fragment.model_dump_json()}
    async for item in message_events(started.new_message):
        yield item


@router.post("/create")
async def create_chat(
    chat_controller: ChatController = Depends(get_chat_controller),
) -> NewChat:
    return chat_controller.create_chat()


@router.get("/{chat_id}/state")
async def get_ai_state(
    chat_id: str,
    chat_controller: ChatController = Depends(get_chat_controller),
) -> AIState:
    return chat_controller.get_ai_state(chat_id)


@router.get("/{chat_id}/ui")
async def get_ui_state(
    chat_id: str,
    chat_controller: ChatController = Depends(get_chat_controller),
) -> list[UIMessage]:
    return chat_controller.get_ui_state(chat_id)


@router.post("/{chat_id}/message")
async def submit_user_message(
    chat_id: str,
    params: ChatRequest,
    chat_controller: ChatController = Depends(get_chat_controller),
) -> EventSourceResponse:
    message = await chat_controller.submit_user_message(chat_id, params.content)
    return EventSourceResponse(message_events(message))


@router.post("/{chat_id}/tool")
async def invoke_tool(
    chat_id: str,
    params: ToolInvocationRequest,
    chat_controller: ChatController = Depends(get_chat_controller),
) -> EventSourceResponse:
    message = await chat_controller.invoke_tool(chat_id, params.tool_name, params.args)
    return EventSourceResponse(message_events(message))


@router.post("/{chat_id}/conversion")
async def start_conversion(
    chat_id: str,
    params: WorkflowAdder,
    chat_controller: ChatController = Depends(get_chat_controller),
) -> EventSourceResponse:
    started = await chat_controller.start_conversion(chat_id, params)
    return EventSourceResponse(started_job_events(started))


@router.post("/{chat_id}/captioner")
async def start_captioner(
    chat_id: str,
    params: CaptionerWorkerAdder,
    chat_controller: ChatController = Depends(get_chat_controller),
) -> EventSourceResponse:
    started = await chat_controller.start_captioner(chat_id, params)
    return EventSourceResponse(started_job_events(started))
