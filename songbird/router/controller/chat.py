from __future__ import annotations

import asyncio
from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from pydantic_ai.models import Model

from songbird import render
from songbird.config import Config, get_config
from songbird.dependencies import get_conversation_store, get_tool_context
from songbird.jobs.submission import JobSubmitter
from songbird.llms.agent import ChatAgent
from songbird.llms.models import get_default_model
from songbird.llms.tools import ToolContext
from songbird.log import logger
from songbird.models.job import Job
from songbird.models.worker import CaptionerWorkerAdder
from songbird.models.workflow import WorkflowAdder
from songbird.render import Fragment, UIMessage, ui_state_from_ai_state
from songbird.router.params import NewChat
from songbird.state import AIState, ConversationStore, Message
from songbird.streamer import Streamable, run_without_blocking
from songbird.utils import nanoid


def get_chat_controller(
    store: ConversationStore = Depends(get_conversation_store),
    config: Config = Depends(get_config),
    context: ToolContext = Depends(get_tool_context),
    default_model: Model | None = Depends(get_default_model),
) -> ChatController:
    return ChatController(store, config, context, default_model)


@dataclass
class StreamingUIMessage:
    """A message whose display keeps changing after it has been returned."""

    id: str
    display: Streamable[Fragment]


@dataclass
class StartedJob:
    job: Job
    converting_ui: Streamable[Fragment]
    new_message: StreamingUIMessage


class ChatController:
    def __init__(
        self,
        store: ConversationStore,
        config: Config,
        context: ToolContext,
        default_model: Model | None,
    ) -> None:
        self.store = store
        self.config = config
        self.context = context
        self.submitter = JobSubmitter(context.backend)

        self.default_model = default_model

    def get_agent(self, require_model: bool = True) -> ChatAgent:
        if require_model and not self.default_model:
            raise HTTPException(
                status_code=status.HTTP_501_NOT_IMPLEMENTED,
                detail="Can not find model, please configure the default model",
            )
        return ChatAgent(
            model=self.default_model,
            context=self.context,
            system_prompt=self.config.default_system_prompt,
        )

    def create_chat(self) -> NewChat:
        state = self.store.create()
        return NewChat(chat_id=state.chat_id)

    def get_ai_state(self, chat_id: str) -> AIState:
        if not self.store.has(chat_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat not found")
        return self.store.get(chat_id)

    def get_ui_state(self, chat_id: str) -> list[UIMessage]:
        return ui_state_from_ai_state(self.get_ai_state(chat_id))

    async def submit_user_message(self, chat_id: str, content: str) -> StreamingUIMessage:
        agent = self.get_agent()
        self.store.create(chat_id)
        ui = Streamable[Fragment](render.spinner_message())

        async def run() -> None:
            async with self.store.turn(chat_id) as ai_state:
                ai_state.update(ai_state.get().append(Message(role="user", content=content)))
                await agent.run(ai_state, ui)

        run_without_blocking(run(), ui, on_error=lambda e: render.tool_error("chat"))
        return StreamingUIMessage(id=nanoid(), display=ui)

    async def invoke_tool(self, chat_id: str, tool_name: str, args: dict) -> StreamingUIMessage:
        agent = self.get_agent(require_model=False)
        self.store.create(chat_id)
        ui = Streamable[Fragment](render.processing())

        async def run() -> None:
            async with self.store.turn(chat_id) as ai_state:
                await agent.run_tool(ai_state, tool_name, args, ui)

        run_without_blocking(run(), ui, on_error=lambda e: render.tool_error(tool_name))
        return StreamingUIMessage(id=nanoid(), display=ui)

    async def start_conversion(self, chat_id: str, adder: WorkflowAdder) -> StartedJob:
        job = await self.submitter.submit_conversion(adder)
        description = (
            f"voice conversion workflow with id: {job.event_id}, youtube video url: {adder.source_url} "
            f"using ai voice model: {adder.voice_conversion_model}"
        )
        return self._finish_in_background(
            chat_id,
            job,
            description,
            input_message=f"I want to get conversion result with conversion id {job.event_id}.",
        )

    async def start_captioner(self, chat_id: str, adder: CaptionerWorkerAdder) -> StartedJob:
        job = await self.submitter.submit_captioner(adder)
        description = f"captioner workflow with id: {job.event_id}, youtube video url: {adder.file_path}"
        return self._finish_in_background(
            chat_id,
            job,
            description,
            input_message=f"I want to get captioner worker event result with event id {job.event_id}.",
        )

    def _finish_in_background(self, chat_id: str, job: Job, description: str, input_message: str) -> StartedJob:
        self.store.create(chat_id)
        converting = Streamable[Fragment](render.processing(show_avatar=False))
        system_message = Streamable[Fragment]()

        async def finish() -> None:
            await asyncio.sleep(self.config.submission_settle_seconds)
            async with self.store.turn(chat_id) as ai_state:
                ai_state.done(
                    ai_state.get().append(
                        Message(role="system", content=f"[User has successfully created {description}]")
                    )
                )
            logger.info(f"Recorded job {job.event_id} in chat {chat_id}")
            converting.done(render.fetch_result_prompt(job.event_id, f"You have created {description}", input_message))
            system_message.done(render.system_message(f"You have created {description}"))

        run_without_blocking(finish(), converting, system_message, on_error=lambda e: render.error_card(job.event_id))
        return StartedJob(
            job=job,
            converting_ui=converting,
            new_message=StreamingUIMessage(id=nanoid(), display=system_message),
        )
