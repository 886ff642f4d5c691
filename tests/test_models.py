from inline_snapshot import snapshot

from songbird.models import (
    VOICE_CONVERSION_MODELS,
    CaptionerWorkerAdder,
    EventResponse,
    WorkflowAdder,
    init_captioner_worker,
    init_workflow,
    voice_conversion_model_to_label,
)


def test_workflow_has_five_ordered_steps():
    workflow = init_workflow(WorkflowAdder(source_url="https://youtu.be/dQw4w9WgXcQ", voice_conversion_model="LadyGaga"))

    assert [step.job_id for step in workflow.jobs] == ["step_1", "step_2", "step_3", "step_4", "step_5"]
    assert [step.worker_name for step in workflow.jobs] == ["transformer", "svs", "vc", "transformer", "transformer"]


def test_workflow_inputs_come_from_earlier_outputs():
    for model in VOICE_CONVERSION_MODELS:
        for pitch in (-12, 0, 7):
            workflow = init_workflow(
                WorkflowAdder(source_url="https://youtu.be/x", pitch=pitch, voice_conversion_model=model)
            )
            available: set[str] = set()
            for step in workflow.jobs:
                assert set(step.relation_result_files.values()) <= available
                local_names = set(step.relation_result_files) | {f.label for f in step.file_list}
                files = step.params["file"]
                assert set(files if isinstance(files, list) else [files]) <= local_names
                available |= set(step.outputs)

    assert workflow.jobs[0].file_list[0].label == "origin"
    assert all(not step.file_list for step in workflow.jobs[1:])


def test_workflow_params():
    workflow = init_workflow(
        WorkflowAdder(
            source_url="https://youtu.be/dQw4w9WgXcQ",
            start_time=75,
            end_time=3725,
            pitch=-3,
            voice_conversion_model="Beatles",
        )
    )
    trim, _, convert, merge, normalize = workflow.jobs

    assert trim.params["start_index"] == "00:01:15"
    assert trim.params["end_index"] == "01:02:05"
    assert convert.params["speakers"] == ["Beatles"]
    assert convert.params["speakers_pitch_adjustment"] == {"Beatles": [-3]}
    assert merge.relation_result_files["vc_result"] == "step_3__Beatles_key_-3"
    assert normalize.params["target_lufs"] == -14
    assert normalize.params["true_peak"] == -2
    assert normalize.relation_result_files == {
        "vc_result": "step_4__merged_result",
        "orig_result": "step_1__trim_cut_result",
    }


def test_workflow_body_does_not_leak_outputs():
    body = init_workflow(WorkflowAdder(source_url="https://youtu.be/x")).model_dump(mode="json")

    assert set(body) == {"jobs"}
    assert set(body["jobs"][0]) == {"relation_result_files", "file_list", "job_id", "params", "worker_name"}


def test_captioner_worker():
    worker = init_captioner_worker(
        CaptionerWorkerAdder(
            file_path="https://youtu.be/dQw4w9WgXcQ",
            auto_detect_languages=["zh-CN", "en-US"],
            speech_translate_target_languages=["ja"],
        )
    )

    assert worker.model_dump() == snapshot({
        "file_list": [{"label": "speech", "path": "https://youtu.be/dQw4w9WgXcQ"}],
        "params": {
            "auto_detect_languages": ["zh-CN", "en-US"],
            "file": "speech",
            "phrases_list": "",
            "speech_translate_target_languages": ["ja"],
        },
    })


def test_event_response_empty():
    assert EventResponse.model_validate({}).is_empty
    assert not EventResponse.model_validate({"jobs": []}).is_empty
    assert not EventResponse.model_validate({"unexpected": 1}).is_empty


def test_event_response_failure_detection():
    ok = EventResponse.model_validate({"states": [{"exception": {}}, {"exception": None}, {}]})
    failed = EventResponse.model_validate({"states": [{"exception": {}}, {"exception": {"type": "OOM"}}]})
    failed_text = EventResponse.model_validate({"states": [{"exception": "worker crashed"}]})

    assert not ok.has_failed
    assert failed.has_failed
    assert failed_text.has_failed


def test_voice_conversion_labels():
    assert voice_conversion_model_to_label("LadyGaga") == "Gen Kaka"
    assert voice_conversion_model_to_label("unknown") == "unknown"
