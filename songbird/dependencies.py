from __future__ import annotations

from contextlib import asynccontextmanager
from functools import cache

from fastapi import Depends

from songbird.backend.client import BackendClient
from songbird.config import Config, get_config
from songbird.jobs.poller import JobPoller
from songbird.llms.tools import ToolContext
from songbird.log import logger
from songbird.state import ConversationStore
from songbird.youtube import YoutubeClient


@cache
def get_conversation_store() -> ConversationStore:
    return ConversationStore()


@cache
def _get_backend_client(base_url: str, timeout: float) -> BackendClient:
    return BackendClient(base_url, timeout=timeout)


@cache
def _get_youtube_client(api_key: str | None) -> YoutubeClient:
    return YoutubeClient(api_key)


def get_backend_client(config: Config = Depends(get_config)) -> BackendClient:
    return _get_backend_client(config.backend_endpoint, config.request_timeout_seconds)


def get_tool_context(
    config: Config = Depends(get_config),
    backend: BackendClient = Depends(get_backend_client),
) -> ToolContext:
    return ToolContext(
        config=config,
        backend=backend,
        poller=JobPoller(backend, config),
        youtube=_get_youtube_client(config.youtube_api_key),
    )


@asynccontextmanager
async def init_clients(config: Config):
    backend = _get_backend_client(config.backend_endpoint, config.request_timeout_seconds)
    youtube = _get_youtube_client(config.youtube_api_key)
    yield
    await backend.close()
    await youtube.close()
    _get_backend_client.cache_clear()
    _get_youtube_client.cache_clear()
    logger.info("HTTP clients disposed")
