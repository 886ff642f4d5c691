import pytest

from songbird.backend.client import BackendClient
from songbird.exceptions import DownloadError, PollError, SubmissionError
from songbird.models import CaptionerWorkerAdder, WorkflowAdder
from tests.fakes import FETCH_FAILURE, FakeBackend, conversion_event


async def test_add_workflow(backend: BackendClient, fake_backend: FakeBackend):
    fake_backend.next_event_id = "wf-42"

    response = await backend.add_workflow(
        WorkflowAdder(source_url="https://youtu.be/dQw4w9WgXcQ", voice_conversion_model="Yoasobi", pitch=2)
    )

    assert response.event_id == "wf-42"
    path, body = fake_backend.submitted[0]
    assert path == "/workflow"
    assert [job["job_id"] for job in body["jobs"]] == ["step_1", "step_2", "step_3", "step_4", "step_5"]
    assert body["jobs"][2]["params"]["speakers_pitch_adjustment"] == {"Yoasobi": [2]}


async def test_add_captioner_worker(backend: BackendClient, fake_backend: FakeBackend):
    response = await backend.add_captioner_worker(
        CaptionerWorkerAdder(file_path="https://youtu.be/dQw4w9WgXcQ", auto_detect_languages=["en-US"])
    )

    assert response.event_id == "evt-1"
    path, body = fake_backend.submitted[0]
    assert path == "/worker/captioner"
    assert body["params"]["file"] == "speech"
    assert body["file_list"] == [{"label": "speech", "path": "https://youtu.be/dQw4w9WgXcQ"}]


async def test_rejected_submission(backend: BackendClient, fake_backend: FakeBackend):
    fake_backend.fail_submission = True

    with pytest.raises(SubmissionError):
        await backend.add_workflow(WorkflowAdder(source_url="https://youtu.be/dQw4w9WgXcQ"))
    with pytest.raises(SubmissionError):
        await backend.add_captioner_worker(CaptionerWorkerAdder(file_path="https://youtu.be/dQw4w9WgXcQ"))


async def test_fetch_event(backend: BackendClient, fake_backend: FakeBackend):
    fake_backend.script("evt-1", {}, conversion_event(["step_1", "step_2"]), FETCH_FAILURE)

    assert (await backend.fetch_event("evt-1")).is_empty

    event = await backend.fetch_event("evt-1")
    assert (event.finished_steps, event.total_steps) == (2, 5)

    with pytest.raises(PollError):
        await backend.fetch_event("evt-1")
    assert fake_backend.fetches == ["evt-1", "evt-1", "evt-1"]


async def test_unknown_event_is_empty(backend: BackendClient):
    assert (await backend.fetch_event("never-submitted")).is_empty


async def test_download_file(backend: BackendClient, fake_backend: FakeBackend):
    response = await backend.download_file("/jobs/step_5/normalized_vc.flac")
    assert response.download_url == "https://cdn.test/jobs/step_5/normalized_vc.flac"

    fake_backend.fail_downloads = True
    with pytest.raises(DownloadError):
        await backend.download_file("/jobs/step_5/normalized_vc.flac")
