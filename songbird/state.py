"""Conversation state: the append-only message log shared with the language model."""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from songbird.exceptions import StateFinalizedError
from songbird.log import logger
from songbird.utils import nanoid


class ToolCallContent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["tool-call"] = "tool-call"
    tool_name: str
    tool_call_id: str
    args: dict[str, Any] = Field(default_factory=dict)


class ToolResultContent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["tool-result"] = "tool-result"
    tool_name: str
    tool_call_id: str
    result: dict[str, Any] = Field(default_factory=dict)


ToolContent = Annotated[ToolCallContent | ToolResultContent, Field(discriminator="type")]

Role = Literal["user", "assistant", "system", "tool"]


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=nanoid)
    role: Role
    content: str | tuple[ToolContent, ...]


class AIState(BaseModel):
    """Immutable snapshot of a conversation. Every change produces a new snapshot."""

    model_config = ConfigDict(frozen=True)

    chat_id: str
    messages: tuple[Message, ...] = ()

    @model_validator(mode="after")
    def _unique_message_ids(self) -> AIState:
        ids = [m.id for m in self.messages]
        if len(ids) != len(set(ids)):
            raise ValueError("Message ids must be unique within a conversation")
        return self

    def append(self, *messages: Message) -> AIState:
        return AIState(chat_id=self.chat_id, messages=(*self.messages, *messages))

    def unmatched_tool_calls(self) -> list[str]:
        """Ids of tool calls that have no tool result yet."""
        calls: list[str] = []
        results: set[str] = set()
        for message in self.messages:
            if isinstance(message.content, str):
                continue
            for part in message.content:
                if isinstance(part, ToolCallContent):
                    calls.append(part.tool_call_id)
                else:
                    results.add(part.tool_call_id)
        return [call_id for call_id in calls if call_id not in results]


def tool_call_message(tool_name: str, tool_call_id: str, args: dict[str, Any]) -> Message:
    return Message(
        role="assistant",
        content=(ToolCallContent(tool_name=tool_name, tool_call_id=tool_call_id, args=args),),
    )


def tool_result_message(tool_name: str, tool_call_id: str, result: dict[str, Any]) -> Message:
    return Message(
        role="tool",
        content=(ToolResultContent(tool_name=tool_name, tool_call_id=tool_call_id, result=result),),
    )


class MutableAIState:
    """
    Read-modify-write handle on one conversation for a single turn.

    ``update`` replaces the in-progress snapshot, ``done`` commits the final one.
    Nothing may be written after ``done``.
    """

    def __init__(self, store: ConversationStore, initial: AIState):
        self._store = store
        self._state = initial
        self._finalized = asyncio.Event()

    @property
    def chat_id(self) -> str:
        return self._state.chat_id

    @property
    def finalized(self) -> bool:
        return self._finalized.is_set()

    def get(self) -> AIState:
        return self._state

    def update(self, next_state: AIState) -> None:
        if self.finalized:
            raise StateFinalizedError(f"Turn for chat {self.chat_id} is already done")
        self._set(next_state)

    def done(self, next_state: AIState) -> None:
        if self.finalized:
            raise StateFinalizedError(f"Turn for chat {self.chat_id} is already done")
        self._set(next_state)
        self._finalized.set()

    async def wait(self) -> AIState:
        """Wait until the turn is finalized and return the committed snapshot."""
        await self._finalized.wait()
        return self._state

    def _set(self, next_state: AIState) -> None:
        if next_state.chat_id != self.chat_id:
            raise ValueError(f"Cannot write state of chat {next_state.chat_id} into chat {self.chat_id}")
        self._state = next_state
        self._store.save(next_state)


class ConversationStore:
    """
    Process-wide map of chat id to AIState.

    Turns on the same chat are serialized by a per-chat lock; different chats
    never block each other.
    """

    def __init__(self) -> None:
        self._states: dict[str, AIState] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        # Turns holding or waiting for each lock; a lock is dropped when this reaches zero.
        self._lock_users: Counter[str] = Counter()

    def create(self, chat_id: str | None = None) -> AIState:
        state = AIState(chat_id=chat_id or nanoid())
        self._states.setdefault(state.chat_id, state)
        return self._states[state.chat_id]

    def get(self, chat_id: str) -> AIState:
        return self._states.get(chat_id) or AIState(chat_id=chat_id)

    def has(self, chat_id: str) -> bool:
        return chat_id in self._states

    def save(self, state: AIState) -> None:
        self._states[state.chat_id] = state

    @asynccontextmanager
    async def turn(self, chat_id: str) -> AsyncIterator[MutableAIState]:
        """Open a turn on ``chat_id``; a turn left without ``done`` is committed as-is."""
        lock = self._locks.setdefault(chat_id, asyncio.Lock())
        self._lock_users[chat_id] += 1
        try:
            async with lock:
                state = MutableAIState(self, self.get(chat_id))
                try:
                    yield state
                finally:
                    if not state.finalized:
                        logger.warning(f"Turn for chat {chat_id} ended without done, committing current state")
                        state.done(state.get())
        finally:
            self._lock_users[chat_id] -= 1
            if not self._lock_users[chat_id]:
                del self._lock_users[chat_id]
                del self._locks[chat_id]
