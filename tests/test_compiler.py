#!/usr/bin/env python3

import asyncio
import json

import pytest

from openrouter_wrapper import MalformedResponse
from scriptgen_core import finalize_prompt, generate_prompts, prompt_to_json, results_to_json
from scriptgen_core.artifact_adapters import PromptDraft
from scriptgen_core.compiler import scene_objective

from fakes import FakeGateway, make_guide, make_request, make_scenes, pipeline_handler, prompts_response, video_prompt_dict


def compile_scenes(count, handler=pipeline_handler, **request_kwargs):
    gateway = FakeGateway(handler)
    results = asyncio.run(generate_prompts(make_request(**request_kwargs), make_scenes(count), make_guide(), gateway))
    return results, gateway


def test_ids_duration_and_aspect_ratio_are_fixed():
    results, _ = compile_scenes(6)

    assert [r.video_prompt.scene_id for r in results] == [f"scene_0{i}" for i in range(1, 7)]
    assert all(r.video_prompt.duration == 8 for r in results)
    assert all(r.video_prompt.aspect_ratio == "16:9" for r in results)


def test_scene_id_has_two_digits_minimum():
    draft = PromptDraft.model_validate(video_prompt_dict(12))
    assert finalize_prompt(draft, 12, make_request()).video_prompt.scene_id == "scene_12"


def test_transitions():
    """Fade in on the first scene, hard cut everywhere else"""
    results, _ = compile_scenes(5)

    assert results[0].video_prompt.transition_from_previous == "Fade in from black"
    assert all(r.video_prompt.transition_from_previous == "hard cut" for r in results[1:])


def test_voiceover_is_dropped():
    results, _ = compile_scenes(2, lambda p, f, s: prompts_response(p, voiceover=True))

    for result in results:
        assert "voiceover" not in result.video_prompt.audio.model_dump()
        assert "voiceover" not in prompt_to_json(result)


def test_image_prompt_removed_when_not_requested():
    results, _ = compile_scenes(2, lambda p, f, s: prompts_response(p, image_prompt="A girl on a pier"))

    assert all(r.video_prompt.starting_image_prompt is None for r in results)
    assert "starting_image_prompt" not in prompt_to_json(results[0])


def test_image_prompt_kept_when_requested():
    results, gateway = compile_scenes(
        2, lambda p, f, s: prompts_response(p, image_prompt="A girl on a pier"), generate_image_prompts=True
    )

    assert all(r.video_prompt.starting_image_prompt == "A girl on a pier" for r in results)
    assert "STARTING IMAGE PROMPT" in gateway.calls[0]["prompt"]


def test_visual_sequence_truncated_to_three_events():
    results, _ = compile_scenes(1, lambda p, f, s: prompts_response(p, events=5))

    assert len(results[0].video_prompt.visual_sequence) == 3


def test_extra_prompts_are_truncated():
    """Never more results than scenes"""
    results, _ = compile_scenes(3, lambda p, f, s: prompts_response(p, extra=2))

    assert len(results) == 3


def test_short_batch_stops_compilation():
    """A batch with fewer prompts than scenes fails instead of leaving gaps"""
    def handler(prompt, fmt, step):
        prompts = prompts_response(prompt)["prompts"]
        return {"prompts": prompts[:2] if "Scene 1 (Objective" in prompt else prompts}

    gateway = FakeGateway(handler)

    with pytest.raises(MalformedResponse):
        asyncio.run(generate_prompts(make_request(), make_scenes(8), make_guide(), gateway))
    assert len(gateway.calls) == 1


def test_unknown_keys_are_ignored():
    """Keys the model adds on its own never reach the compiled prompt"""
    def handler(prompt, fmt, step):
        response = prompts_response(prompt)
        for item in response["prompts"]:
            item["video_prompt"]["narration"] = "Once upon a time"
            item["video_prompt"]["camera"]["lens"] = "35mm"
            item["notes"] = "extra"
        response["comment"] = "Here are your prompts"
        return response

    results, _ = compile_scenes(2, handler)

    assert len(results) == 2
    dumped = prompt_to_json(results[0])
    assert "narration" not in dumped
    assert "lens" not in dumped


def test_overwritten_fields_accept_any_shape():
    """scene_id, duration, aspect_ratio and transition are replaced whatever the model sent"""
    def handler(prompt, fmt, step):
        response = prompts_response(prompt)
        for item in response["prompts"]:
            video_prompt = item["video_prompt"]
            video_prompt["scene_id"] = 7
            video_prompt["duration"] = "8s"
            video_prompt["aspect_ratio"] = None
            video_prompt["transition_from_previous"] = {"type": "dissolve"}
        return response

    results, _ = compile_scenes(2, handler)

    assert [r.video_prompt.scene_id for r in results] == ["scene_01", "scene_02"]
    assert all(r.video_prompt.duration == 8 for r in results)
    assert all(r.video_prompt.aspect_ratio == "16:9" for r in results)
    assert results[1].video_prompt.transition_from_previous == "hard cut"


def test_continuity_anchor_in_later_batches():
    """Batch 2 is shown the last compiled prompt of batch 1"""
    results, gateway = compile_scenes(6)

    assert len(gateway.calls) == 2
    assert "CONTEXT FROM PREVIOUS SCENE'S PROMPT" not in gateway.calls[0]["prompt"]

    second = gateway.calls[1]["prompt"]
    assert "CONTEXT FROM PREVIOUS SCENE'S PROMPT" in second
    assert '"scene_id": "scene_04"' in second
    assert "Scene 5 (Objective:" in second
    assert "Mira, a young inventor" in second


def test_scene_objectives():
    assert scene_objective(1, 8).startswith("Establish")
    assert scene_objective(2, 8).startswith("Introduce the character's world")
    assert scene_objective(4, 8).startswith("Introduce the first obstacle")
    assert scene_objective(6, 8).startswith("Build tension")
    assert scene_objective(7, 8).startswith("Depict the story's climax")
    assert scene_objective(8, 8).startswith("Show the resolution")
    assert scene_objective(10, 12).startswith("Continue the narrative flow")


def test_prompts_progress_messages():
    gateway = FakeGateway(pipeline_handler)
    progress = []

    asyncio.run(generate_prompts(
        make_request(), make_scenes(5), make_guide(), gateway, on_progress=lambda p, m: progress.append((p, m))
    ))

    assert progress == [
        (80, "Step 3/3: Writing detailed prompts... (4/5)"),
        (100, "Step 3/3: Writing detailed prompts... (5/5)"),
    ]


def test_results_to_json():
    results, _ = compile_scenes(2)

    data = json.loads(results_to_json(results))
    assert [d["video_prompt"]["scene_id"] for d in data] == ["scene_01", "scene_02"]
    assert data[0]["scene_summary"] == "Summary 1"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
