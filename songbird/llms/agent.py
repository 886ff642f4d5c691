"""Runs one chat turn: asks the model, then either streams its text or dispatches its tool calls."""

from __future__ import annotations

import json
from typing import Any

from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelRequestPart,
    ModelResponse,
    ModelResponsePart,
    PartDeltaEvent,
    PartStartEvent,
    SystemPromptPart,
    TextPart,
    TextPartDelta,
    ToolCallPart,
    ToolReturnPart,
    UserPromptPart,
)
from pydantic_ai.models import Model, ModelRequestParameters
from pydantic_ai.settings import ModelSettings
from pydantic_ai.tools import ToolDefinition

from songbird import render
from songbird.exceptions import UnknownToolError
from songbird.llms.tools import TOOLS, Tool, ToolContext, ToolOutcome
from songbird.log import logger
from songbird.render import Fragment
from songbird.state import (
    AIState,
    Message,
    MutableAIState,
    ToolCallContent,
    ToolResultContent,
    tool_call_message,
    tool_result_message,
)
from songbird.streamer import Streamable
from songbird.utils import nanoid

SYSTEM_PROMPT = """\
You are an AI music conversation bot and your main mission is to help users do different processing tasks using youtube videos as input.
By this I mean, users can provide a youtube link and then our app will process this audio accordingly.

If the user requests to do voice conversion, call `show_voice_conversion_ui` to show the VoiceConversion UI. This UI component allows users to convert A singer voice to another B singer voice by selecting a pre-trained B singer voice AI model.
If the user requests to get subtitle captions for a youtube video, call `show_captioner_worker_ui` to show the CaptionerWorker UI. This UI component allows users to select which languages to detect from the youtube video, and then output caption subtitle in srt file format.

If the user requests getting voice conversion event result, call `get_conversion_event` to get conversion event result.
If the user requests getting captioner worker event, call `get_captioner_worker_event` to get captioner worker event result.

If the user requests getting youtube video length, call `get_youtube_length` to get youtube video length in seconds.

If the user wants to complete another impossible task, respond that you are a demo and cannot do that.
"""


def _request_parts(message: Message) -> list[ModelRequestPart]:
    if isinstance(message.content, str):
        if message.role == "system":
            return [SystemPromptPart(content=message.content)]
        return [UserPromptPart(content=message.content)]
    return [
        ToolReturnPart(tool_name=part.tool_name, content=part.result, tool_call_id=part.tool_call_id)
        for part in message.content
        if isinstance(part, ToolResultContent)
    ]


def _response_parts(message: Message) -> list[ModelResponsePart]:
    if isinstance(message.content, str):
        return [TextPart(content=message.content)]
    return [
        ToolCallPart(tool_name=part.tool_name, args=part.args, tool_call_id=part.tool_call_id)
        for part in message.content
        if isinstance(part, ToolCallContent)
    ]


def to_model_messages(ai_state: AIState, system_prompt: str) -> list[ModelMessage]:
    """Translate the conversation log into the model's message history."""
    messages: list[ModelMessage] = []
    pending: list[ModelRequestPart] = [SystemPromptPart(content=system_prompt)]
    for message in ai_state.messages:
        if message.role == "assistant":
            if pending:
                messages.append(ModelRequest(parts=pending))
                pending = []
            messages.append(ModelResponse(parts=_response_parts(message)))
        else:
            pending.extend(_request_parts(message))
    if pending:
        messages.append(ModelRequest(parts=pending))
    return messages


def _args_as_dict(args: str | dict[str, Any] | None) -> dict[str, Any]:
    if not args:
        return {}
    if isinstance(args, dict):
        return args
    try:
        loaded = json.loads(args)
    except json.JSONDecodeError:
        return {"raw": args}
    return loaded if isinstance(loaded, dict) else {"raw": loaded}


class ChatAgent:
    """
    Dispatches model output for one conversation turn.

    Every tool call recorded in the conversation is followed by its tool
    result, even when the handler fails, so the next model turn always sees
    a well-formed history.
    """

    def __init__(
        self,
        model: Model | None,
        context: ToolContext,
        tools: dict[str, Tool] | None = None,
        system_prompt: str | None = None,
        model_settings: ModelSettings | None = None,
    ):
        self.model = model
        self.context = context
        self.tools = TOOLS if tools is None else tools
        self.system_prompt = system_prompt or SYSTEM_PROMPT
        self.model_settings = model_settings

    def tool_definitions(self) -> list[ToolDefinition]:
        return [tool.definition() for tool in self.tools.values()]

    def request_parameters(self) -> ModelRequestParameters:
        return ModelRequestParameters(function_tools=self.tool_definitions(), allow_text_output=True)

    async def run(self, ai_state: MutableAIState, ui: Streamable[Fragment]) -> None:
        """Answer the last user message. Seals ``ui`` and commits ``ai_state``."""
        if self.model is None:
            raise RuntimeError("No language model configured")
        messages = to_model_messages(ai_state.get(), self.system_prompt)

        text = ""
        async with self.model.request_stream(messages, self.model_settings, self.request_parameters()) as response:
            async for event in response:
                delta = ""
                if isinstance(event, PartStartEvent) and isinstance(event.part, TextPart):
                    delta = event.part.content
                elif isinstance(event, PartDeltaEvent) and isinstance(event.delta, TextPartDelta):
                    delta = event.delta.content_delta
                if delta:
                    text += delta
                    ui.update(render.bot_message(text))
            model_response = response.get()

        tool_calls = [part for part in model_response.parts if isinstance(part, ToolCallPart)]
        if not tool_calls:
            ai_state.done(ai_state.get().append(Message(role="assistant", content=text)))
            ui.done(render.bot_message(text))
            return

        if text:
            ai_state.update(ai_state.get().append(Message(role="assistant", content=text)))

        display: Fragment | None = None
        for call in tool_calls:
            display = await self.call_tool(ai_state, call.tool_name, call.tool_call_id, call.args, ui)
        ai_state.done(ai_state.get())
        ui.done(display)

    async def run_tool(
        self,
        ai_state: MutableAIState,
        tool_name: str,
        args: dict[str, Any],
        ui: Streamable[Fragment],
    ) -> None:
        """Invoke a tool directly, without asking the model first."""
        display = await self.call_tool(ai_state, tool_name, nanoid(), args, ui)
        ai_state.done(ai_state.get())
        ui.done(display)

    async def call_tool(
        self,
        ai_state: MutableAIState,
        tool_name: str,
        tool_call_id: str,
        args: str | dict[str, Any] | None,
        ui: Streamable[Fragment],
    ) -> Fragment:
        """Record the call, run its handler and record the result. Returns the final fragment."""
        call_args = _args_as_dict(args)
        ai_state.update(ai_state.get().append(tool_call_message(tool_name, tool_call_id, call_args)))

        try:
            outcome = await self._execute(tool_name, call_args, ui)
        except Exception as e:
            logger.exception(f"Tool {tool_name} ({tool_call_id}) failed: {e}")
            outcome = ToolOutcome(result={"error": str(e)}, display=render.tool_error(tool_name))

        ai_state.update(ai_state.get().append(tool_result_message(tool_name, tool_call_id, outcome.result)))
        return outcome.display

    async def _execute(self, tool_name: str, args: dict[str, Any], ui: Streamable[Fragment]) -> ToolOutcome:
        tool = self.tools.get(tool_name)
        if tool is None:
            raise UnknownToolError(f"Unknown tool: {tool_name}")
        validated = tool.args_model.model_validate(args)
        logger.info(f"Running tool {tool_name} with {args}")
        return await tool.handler(self.context, validated, ui)
