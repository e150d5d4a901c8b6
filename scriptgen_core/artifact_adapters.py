"""
Artifact Adapters - DTO management for the script pipeline

This module handles:
- Output DTOs the model is asked to fill for each step
- Rendering artifacts (transcript, story, guide) as prompt context
- State evaluation and next step determination
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence, Type

from pydantic import BaseModel, ConfigDict, Field, create_model

from .artifact import (
    ChatMessage,
    Scene,
    ConsistencyGuide,
    SettingDetails,
    CameraDetails,
    VisualSequenceEvent,
    CharacterDetails,
    VideoPromptSpec,
    GenerationStep,
)


# ---------- Raw model outputs ----------

class DraftModel(BaseModel):
    """Base for raw model output. Unknown keys are dropped, not rejected."""
    model_config = ConfigDict(extra="ignore")


class SceneDraft(DraftModel):
    """A scene as the model returns it, before renumbering."""
    scene_number: Optional[Any] = Field(None, description="Scene number within the whole story.")
    description: str = Field(..., description="Concise summary of the key visual event of the scene.")


class SettingDraft(SettingDetails):
    model_config = ConfigDict(extra="ignore")


class CameraDraft(CameraDetails):
    model_config = ConfigDict(extra="ignore")


class VisualEventDraft(VisualSequenceEvent):
    model_config = ConfigDict(extra="ignore")


class CharacterDraft(CharacterDetails):
    model_config = ConfigDict(extra="ignore")


class AudioDraft(DraftModel):
    ambient_sound: Optional[str] = None
    sfx: Optional[str] = None
    voiceover: Optional[Any] = Field(None, description="Not supported; dropped on finalize.")


class VideoPromptDraft(DraftModel):
    """Video prompt as the model returns it, before invariants are enforced.

    Fields that finalize_prompt always overwrites are accepted in any shape.
    """
    scene_id: Optional[Any] = Field(None, description="e.g. 'scene_01'.")
    objective_in_scene: str = Field(..., description="The narrative purpose of this scene.")
    duration: Optional[Any] = Field(None, description="Duration in seconds.")
    style: str
    setting: SettingDraft
    camera: CameraDraft
    visual_sequence: List[VisualEventDraft] = Field(..., description="At most 3 continuous time ranges.")
    characters: List[CharacterDraft] = Field(..., min_length=1)
    character_interaction: Optional[str] = None
    audio: AudioDraft = Field(default_factory=AudioDraft)
    aspect_ratio: Optional[Any] = None
    transition_from_previous: Optional[Any] = None
    starting_image_prompt: Optional[str] = Field(None, description="Only generate if requested.")


class PromptDraft(DraftModel):
    scene_summary: str = Field(..., description="The original scene description.")
    video_prompt: VideoPromptDraft


# ---------- Output DTO Creation ----------

def create_output_dto(step: GenerationStep) -> Type[BaseModel]:
    """Create the structured-output model for each step.

    Args:
        step: GenerationStep enum value

    Returns:
        Pydantic model class passed to the gateway as response_format
    """
    if step == GenerationStep.STORY:
        fields = {"scenes": (List[SceneDraft], Field(..., description="The requested scenes, in order"))}
    elif step == GenerationStep.GUIDE:
        return ConsistencyGuide
    elif step == GenerationStep.PROMPTS:
        fields = {"prompts": (List[PromptDraft], Field(..., description="One video prompt per requested scene, in order"))}
    else:
        raise ValueError(f"Unknown generation step: {step}")

    return create_model(
        f"{step.value.title()}BatchOutput",
        **fields,
        __base__=DraftModel
    )


# ---------- Context rendering ----------

def transcript_to_string(chat_history: Sequence[ChatMessage]) -> str:
    return "\n".join(
        f"{'User' if m.role == 'user' else 'AI Director'}: {m.text}"
        for m in chat_history
    )


def story_to_string(scenes: Sequence[Scene]) -> str:
    return "\n".join(f"Scene {s.index}: {s.description}" for s in scenes)


def guide_to_string(guide: ConsistencyGuide) -> str:
    return (
        f"- Characters & Appearance: {guide.characters_and_appearance}\n"
        f"- Setting & Mood: {guide.setting_and_mood}\n"
        f"- Key Objects & Style: {guide.key_objects_and_style}"
    )


def video_prompt_to_json(video_prompt: VideoPromptSpec) -> str:
    return json.dumps(video_prompt.model_dump(exclude_none=True), indent=2, ensure_ascii=False)


# ---------- Dependencies ----------

def get_dependencies() -> Dict[GenerationStep, List[GenerationStep]]:
    """Get step dependency graph."""
    return {
        GenerationStep.STORY: [],
        GenerationStep.GUIDE: [GenerationStep.STORY],
        GenerationStep.PROMPTS: [GenerationStep.GUIDE],
    }


# ---------- State Evaluation ----------

def get_completion_status(state) -> Dict[GenerationStep, bool]:
    """Check which generation steps have been completed.

    Args:
        state: The current PipelineState

    Returns:
        Dictionary mapping GenerationStep to completion status (bool)
    """
    return {
        GenerationStep.STORY: len(state.scenes) > 0,
        GenerationStep.GUIDE: state.guide is not None,
        GenerationStep.PROMPTS: len(state.results) > 0,
    }


def get_next_steps(state) -> List[GenerationStep]:
    """Get the next available generation steps based on completed dependencies."""
    completion_status = get_completion_status(state)
    available_steps = []

    for step, deps in get_dependencies().items():
        if not completion_status[step]:
            if all(completion_status[dep] for dep in deps):
                available_steps.append(step)

    return available_steps
