from __future__ import annotations

import os

os.environ["LOGURU_LEVEL"] = "DEBUG"

import httpx
import pytest
from fastapi.testclient import TestClient
from sse_starlette.sse import AppStatus

from songbird.app import app as APP
from songbird.backend.client import BackendClient
from songbird.config import Config, get_config
from songbird.dependencies import get_conversation_store, get_tool_context
from songbird.jobs.poller import JobPoller
from songbird.llms.models import get_default_model
from songbird.llms.tools import ToolContext
from songbird.state import ConversationStore
from songbird.youtube import YoutubeClient
from tests.fakes import BACKEND_URL, FakeBackend, youtube_handler


@pytest.fixture
def config() -> Config:
    return Config(
        backend_endpoint=BACKEND_URL,
        timeout_in_minutes=5,
        poll_interval_seconds=0,
        settle_delay_seconds=0,
        submission_settle_seconds=0,
        max_empty_attempts=8,
        youtube_api_key="test-key",
    )


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def backend(fake_backend: FakeBackend) -> BackendClient:
    return BackendClient(BACKEND_URL, client=fake_backend.client())


@pytest.fixture
def poller(backend: BackendClient, config: Config) -> JobPoller:
    return JobPoller(backend, config)


@pytest.fixture
def youtube() -> YoutubeClient:
    return YoutubeClient("test-key", client=httpx.AsyncClient(transport=httpx.MockTransport(youtube_handler)))


@pytest.fixture
def context(config: Config, backend: BackendClient, poller: JobPoller, youtube: YoutubeClient) -> ToolContext:
    return ToolContext(config=config, backend=backend, poller=poller, youtube=youtube)


@pytest.fixture
def store() -> ConversationStore:
    return ConversationStore()


@pytest.fixture
def app(monkeypatch, config: Config, context: ToolContext, store: ConversationStore):
    # EventSourceResponse keeps a process-wide exit event bound to the first event loop.
    monkeypatch.setattr(AppStatus, "should_exit_event", None, raising=False)

    # Dependencies injection mock; tests swap the model in through ``get_default_model``.
    APP.dependency_overrides = {
        get_config: lambda: config,
        get_tool_context: lambda: context,
        get_conversation_store: lambda: store,
        get_default_model: lambda: None,
    }
    yield APP
    APP.dependency_overrides = {}


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client
