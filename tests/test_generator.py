#!/usr/bin/env python3

import asyncio

import pytest

from openrouter_wrapper import TransportFailure
from scriptgen_core import GeneratorStep, INITIAL_STATE, ScriptGenerator, get_next_steps, GenerationStep
from scriptgen_core.state import CANCELLED_MESSAGE

from fakes import FakeGateway, Gate, make_request, pipeline_handler


def test_full_run_step_by_step():
    generator = ScriptGenerator(FakeGateway(pipeline_handler))

    async def run():
        await generator.start_generation(make_request(seconds=40))
        assert generator.state.step == GeneratorStep.STORY_COMPLETE
        assert len(generator.state.scenes) == 5
        assert generator.state.progress == 100

        await generator.advance_to_guide()
        assert generator.state.step == GeneratorStep.GUIDE_COMPLETE
        assert generator.state.guide is not None

        await generator.advance_to_prompts()

    asyncio.run(run())

    state = generator.state
    assert state.step == GeneratorStep.COMPLETE
    assert len(state.results) == 5
    assert state.cancel_token is None
    assert state.error is None


def test_run_all_and_listeners():
    generator = ScriptGenerator(FakeGateway(pipeline_handler))
    seen = []
    generator.subscribe(lambda s: seen.append(s.step))

    state = asyncio.run(generator.run_all(make_request(seconds=16)))

    assert state.step == GeneratorStep.COMPLETE
    assert get_next_steps(state) == []
    for step in (GeneratorStep.GENERATING_STORY, GeneratorStep.STORY_COMPLETE, GeneratorStep.GENERATING_GUIDE,
                 GeneratorStep.GUIDE_COMPLETE, GeneratorStep.GENERATING_PROMPTS, GeneratorStep.COMPLETE):
        assert step in seen


def test_unsubscribe():
    generator = ScriptGenerator(FakeGateway(pipeline_handler))
    seen = []
    unsubscribe = generator.subscribe(seen.append)
    unsubscribe()

    asyncio.run(generator.start_generation(make_request(seconds=8)))

    assert seen == []


def test_advance_before_story_is_ignored():
    gateway = FakeGateway(pipeline_handler)
    generator = ScriptGenerator(gateway)

    asyncio.run(generator.advance_to_guide())
    asyncio.run(generator.advance_to_prompts())

    assert generator.state == INITIAL_STATE
    assert gateway.calls == []


def test_advance_to_prompts_requires_guide():
    gateway = FakeGateway(pipeline_handler)
    generator = ScriptGenerator(gateway)

    async def run():
        await generator.start_generation(make_request(seconds=8))
        await generator.advance_to_prompts()

    asyncio.run(run())

    assert generator.state.step == GeneratorStep.STORY_COMPLETE
    assert gateway.calls_for("prompts") == []


def test_advance_is_idempotent():
    gateway = FakeGateway(pipeline_handler)
    generator = ScriptGenerator(gateway)

    async def run():
        await generator.start_generation(make_request(seconds=8))
        await generator.advance_to_guide()
        await generator.advance_to_guide()

    asyncio.run(run())

    assert len(gateway.calls_for("guide")) == 1


def test_start_while_running_is_ignored():
    async def run():
        gate = Gate()

        def handler(prompt, fmt, step):
            return gate.wait(pipeline_handler(prompt, fmt, step))

        gateway = FakeGateway(handler)
        generator = ScriptGenerator(gateway)

        first = asyncio.create_task(generator.start_generation(make_request(seconds=8)))
        await gate.entered.wait()
        token = generator.state.cancel_token

        await generator.start_generation(make_request(seconds=64))
        assert generator.state.cancel_token is token
        assert generator.state.request.seconds == 8

        gate.release.set()
        await first
        return generator, gateway

    generator, gateway = asyncio.run(run())

    assert len(gateway.calls) == 1
    assert generator.state.step == GeneratorStep.STORY_COMPLETE
    assert len(generator.state.scenes) == 1


def test_start_after_complete_requires_reset():
    gateway = FakeGateway(pipeline_handler)
    generator = ScriptGenerator(gateway)

    async def run():
        await generator.run_all(make_request(seconds=8))
        await generator.start_generation(make_request(seconds=16))
        assert generator.state.step == GeneratorStep.COMPLETE

        generator.reset()
        await generator.start_generation(make_request(seconds=16))

    asyncio.run(run())

    assert generator.state.step == GeneratorStep.STORY_COMPLETE
    assert len(generator.state.scenes) == 2


def test_cancel_mid_story():
    """Cancelling between batches leaves no scenes and a cancelled error"""
    async def run():
        generator = ScriptGenerator(None)
        calls = []

        def handler(prompt, fmt, step):
            calls.append(step)
            generator.cancel()
            return pipeline_handler(prompt, fmt, step)

        generator.gateway = FakeGateway(handler)
        await generator.start_generation(make_request(minutes=1, seconds=0))
        return generator, calls

    generator, calls = asyncio.run(run())

    assert calls == ["story"]
    state = generator.state
    assert state.step == GeneratorStep.ERROR
    assert state.error == CANCELLED_MESSAGE
    assert state.scenes == ()
    assert state.cancel_token is None


def test_cancel_during_prompts_appends_no_results():
    async def run():
        gate = Gate()

        def handler(prompt, fmt, step):
            if step == "prompts":
                return gate.wait(pipeline_handler(prompt, fmt, step))
            return pipeline_handler(prompt, fmt, step)

        generator = ScriptGenerator(FakeGateway(handler))
        await generator.start_generation(make_request(minutes=1, seconds=0))
        await generator.advance_to_guide()

        task = asyncio.create_task(generator.advance_to_prompts())
        await gate.entered.wait()
        generator.cancel()
        gate.release.set()
        await task
        return generator

    generator = asyncio.run(run())

    state = generator.state
    assert state.step == GeneratorStep.ERROR
    assert state.error == CANCELLED_MESSAGE
    assert state.results == ()
    assert len(state.scenes) == 8
    assert state.guide is not None


def test_failure_sets_error_and_keeps_earlier_work():
    def handler(prompt, fmt, step):
        if step == "guide":
            return TransportFailure("Request to the AI failed: boom")
        return pipeline_handler(prompt, fmt, step)

    generator = ScriptGenerator(FakeGateway(handler))
    state = asyncio.run(generator.run_all(make_request(seconds=16)))

    assert state.step == GeneratorStep.ERROR
    assert state.error == "Generation failed: Request to the AI failed: boom"
    assert len(state.scenes) == 2
    assert state.guide is None
    assert state.cancel_token is None


def test_short_story_batch_ends_in_error():
    def handler(prompt, fmt, step):
        response = pipeline_handler(prompt, fmt, step)
        if step == "story" and "from scene 5 to 8" in prompt:
            response["scenes"] = response["scenes"][:1]
        return response

    generator = ScriptGenerator(FakeGateway(handler))
    state = asyncio.run(generator.run_all(make_request(minutes=1, seconds=4)))

    assert state.step == GeneratorStep.ERROR
    assert state.error.startswith("Generation failed: Asked for 4 scenes, the AI returned 1.")
    assert state.scenes == ()
    assert state.cancel_token is None


def test_reset_discards_in_flight_result():
    """A stage that finishes after reset must not touch the new state"""
    async def run():
        gate = Gate()

        def handler(prompt, fmt, step):
            return gate.wait(pipeline_handler(prompt, fmt, step))

        generator = ScriptGenerator(FakeGateway(handler))
        task = asyncio.create_task(generator.start_generation(make_request(seconds=16)))
        await gate.entered.wait()

        generator.reset()
        gate.release.set()
        await task
        return generator

    generator = asyncio.run(run())

    assert generator.state == INITIAL_STATE


def test_progress_is_bounded():
    generator = ScriptGenerator(FakeGateway(pipeline_handler))
    progress = []
    generator.subscribe(lambda s: progress.append(s.progress))

    asyncio.run(generator.run_all(make_request(minutes=1, seconds=4)))

    assert progress
    assert all(0 <= p <= 100 for p in progress)
    assert generator.state.results[-1].video_prompt.scene_id == "scene_08"


def test_completion_status_tracks_state():
    generator = ScriptGenerator(FakeGateway(pipeline_handler))

    asyncio.run(generator.start_generation(make_request(seconds=8)))

    assert get_next_steps(generator.state) == [GenerationStep.GUIDE]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
