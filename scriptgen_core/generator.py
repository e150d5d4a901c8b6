"""
Script Generator

Controller for one pipeline run: story -> consistency guide -> video prompts.
It owns the PipelineState, the run's cancellation token, and is the single
place where stage failures are classified (cancelled vs. failed).
"""

from __future__ import annotations

from typing import Awaitable, Callable, List, Optional

from openrouter_wrapper import Cancelled

from . import state as transitions
from .artifact import GenerationRequest, GenerationStep
from .artifact_adapters import get_next_steps
from .cancellation import CancellationToken
from .compiler import generate_prompts
from .gateway import ModelGateway, OpenRouterGateway
from .guide import generate_consistency_guide
from .state import GeneratorStep, PipelineState, INITIAL_STATE
from .story import generate_story
from .templates import PromptTemplates, DEFAULT_TEMPLATES

StateListener = Callable[[PipelineState], None]


class ScriptGenerator:
    """State machine driving the three generation stages."""

    def __init__(self, gateway: Optional[ModelGateway] = None, templates: PromptTemplates = DEFAULT_TEMPLATES):
        self.gateway = gateway or OpenRouterGateway()
        self.templates = templates
        self._state = INITIAL_STATE
        self._epoch = 0
        self._listeners: List[StateListener] = []

    # ---------- State ----------

    @property
    def state(self) -> PipelineState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call listener with every new state. Returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    def _apply(self, new_state: PipelineState) -> None:
        self._state = new_state
        for listener in list(self._listeners):
            listener(new_state)

    def _progress_callback(self, epoch: int):
        def on_progress(progress: int, message: str) -> None:
            if epoch == self._epoch:
                self._apply(transitions.set_progress(self._state, progress, message))
        return on_progress

    async def _run_stage(self, epoch: int, work: Callable[[], Awaitable], on_success) -> None:
        """Await a stage and commit its result, or classify its failure.

        Results and errors from a run that was reset or superseded are dropped.
        """
        try:
            result = await work()
        except Cancelled:
            if epoch == self._epoch:
                print("⏹️  Generation cancelled")
                self._apply(transitions.cancelled(self._state))
            return
        except Exception as e:
            if epoch == self._epoch:
                print(f"❌ Generation failed: {e}")
                self._apply(transitions.failed(self._state, f"Generation failed: {e}"))
            return

        if epoch == self._epoch:
            self._apply(on_success(self._state, result))

    # ---------- Operations ----------

    async def start_generation(self, request: GenerationRequest) -> None:
        """Begin a run with the story stage. Ignored unless the generator is idle."""
        if self._state.step != GeneratorStep.IDLE or self._state.cancel_token is not None:
            return

        self._epoch += 1
        epoch = self._epoch
        token = CancellationToken()
        self._apply(transitions.start_generation(self._state, request, token))

        await self._run_stage(
            epoch,
            lambda: generate_story(request, self.gateway, self._progress_callback(epoch), token, self.templates),
            transitions.story_succeeded,
        )

    async def advance_to_guide(self) -> None:
        """Run the guide stage. Ignored unless the story is complete and the run is live."""
        current = self._state
        if current.step != GeneratorStep.STORY_COMPLETE or not current.scenes or current.cancel_token is None:
            return

        epoch = self._epoch
        token = current.cancel_token
        scenes = current.scenes
        self._apply(transitions.start_guide(current))

        await self._run_stage(
            epoch,
            lambda: generate_consistency_guide(scenes, self.gateway, token, self.templates),
            transitions.guide_succeeded,
        )

    async def advance_to_prompts(self) -> None:
        """Run the prompt stage. Ignored unless the guide is complete and the run is live."""
        current = self._state
        if (current.step != GeneratorStep.GUIDE_COMPLETE or current.request is None or not current.scenes
                or current.guide is None or current.cancel_token is None):
            return

        epoch = self._epoch
        token = current.cancel_token
        self._apply(transitions.start_prompts(current))

        await self._run_stage(
            epoch,
            lambda: generate_prompts(
                current.request, current.scenes, current.guide, self.gateway,
                self._progress_callback(epoch), token, self.templates,
            ),
            transitions.prompts_succeeded,
        )

    def cancel(self) -> None:
        """Trigger the live token; takes effect at the next check point."""
        if self._state.cancel_token is not None:
            self._state.cancel_token.cancel()

    def reset(self) -> None:
        """Discard everything and return to idle. Does not cancel in-flight calls."""
        self._epoch += 1
        self._apply(transitions.reset(self._state))

    async def run_all(self, request: GenerationRequest) -> PipelineState:
        """Run story, guide and prompts back to back, stopping at the first error."""
        await self.start_generation(request)

        stage_runners = {
            GenerationStep.GUIDE: self.advance_to_guide,
            GenerationStep.PROMPTS: self.advance_to_prompts,
        }
        while self._state.step in (GeneratorStep.STORY_COMPLETE, GeneratorStep.GUIDE_COMPLETE):
            next_steps = get_next_steps(self._state)
            if not next_steps or next_steps[0] not in stage_runners:
                break
            before = self._state
            await stage_runners[next_steps[0]]()
            if self._state is before:
                break

        return self._state
