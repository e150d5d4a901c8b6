"""
Pipeline state and its transitions.

PipelineState is immutable. Each transition below takes the current state and
returns a new one; the controller in generator.py is the only caller.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .artifact import CompiledPrompt, ConsistencyGuide, GenerationRequest, Scene


class GeneratorStep(Enum):
    IDLE = "idle"
    GENERATING_STORY = "generating_story"
    STORY_COMPLETE = "story_complete"
    GENERATING_GUIDE = "generating_guide"
    GUIDE_COMPLETE = "guide_complete"
    GENERATING_PROMPTS = "generating_prompts"
    COMPLETE = "complete"
    ERROR = "error"


RUNNING_STEPS = (
    GeneratorStep.GENERATING_STORY,
    GeneratorStep.GENERATING_GUIDE,
    GeneratorStep.GENERATING_PROMPTS,
)

CANCELLED_MESSAGE = "Generation cancelled by user."


class PipelineState(BaseModel):
    """Everything known about the current run."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    step: GeneratorStep = GeneratorStep.IDLE
    progress: int = Field(0, ge=0, le=100)
    step_message: str = ""
    error: Optional[str] = None
    request: Optional[GenerationRequest] = None
    scenes: Tuple[Scene, ...] = ()
    guide: Optional[ConsistencyGuide] = None
    results: Tuple[CompiledPrompt, ...] = ()
    cancel_token: Optional[Any] = None

    @property
    def is_running(self) -> bool:
        return self.step in RUNNING_STEPS


INITIAL_STATE = PipelineState()


# ---------- Transitions ----------

def start_generation(state: PipelineState, request: GenerationRequest, cancel_token) -> PipelineState:
    return INITIAL_STATE.model_copy(update={
        "step": GeneratorStep.GENERATING_STORY,
        "request": request,
        "cancel_token": cancel_token,
        "step_message": "Starting...",
    })


def start_guide(state: PipelineState) -> PipelineState:
    return state.model_copy(update={
        "step": GeneratorStep.GENERATING_GUIDE,
        "progress": 0,
        "step_message": "Step 2/3: Analyzing characters and setting...",
    })


def start_prompts(state: PipelineState) -> PipelineState:
    return state.model_copy(update={
        "step": GeneratorStep.GENERATING_PROMPTS,
        "progress": 0,
        "step_message": "Step 3/3: Starting detailed prompts...",
    })


def set_progress(state: PipelineState, progress: int, message: str) -> PipelineState:
    return state.model_copy(update={
        "progress": max(0, min(100, progress)),
        "step_message": message,
    })


def story_succeeded(state: PipelineState, scenes: Sequence[Scene]) -> PipelineState:
    return state.model_copy(update={
        "step": GeneratorStep.STORY_COMPLETE,
        "scenes": tuple(scenes),
        "progress": 100,
        "step_message": "The story is ready for review.",
    })


def guide_succeeded(state: PipelineState, guide: ConsistencyGuide) -> PipelineState:
    return state.model_copy(update={
        "step": GeneratorStep.GUIDE_COMPLETE,
        "guide": guide,
        "progress": 100,
        "step_message": "Analysis complete. Ready to generate prompts.",
    })


def prompts_succeeded(state: PipelineState, results: Sequence[CompiledPrompt]) -> PipelineState:
    return state.model_copy(update={
        "step": GeneratorStep.COMPLETE,
        "results": tuple(results),
        "progress": 100,
        "step_message": "Done!",
        "cancel_token": None,
    })


def failed(state: PipelineState, message: str) -> PipelineState:
    return state.model_copy(update={
        "step": GeneratorStep.ERROR,
        "error": message,
        "cancel_token": None,
    })


def cancelled(state: PipelineState) -> PipelineState:
    return failed(state, CANCELLED_MESSAGE)


def reset(state: PipelineState) -> PipelineState:
    return INITIAL_STATE
