"""
Step 3: compile scenes into structured video prompts.

Scenes are compiled four at a time. Each batch after the first is anchored to
the last compiled prompt so its opening frame continues the previous clip.
Every returned prompt is finalized here: the fields the pipeline depends on
are overwritten no matter what the model produced.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from openrouter_wrapper import MalformedResponse

from .artifact import (
    AudioDetails,
    CameraDetails,
    CharacterDetails,
    CompiledPrompt,
    ConsistencyGuide,
    GenerationRequest,
    GenerationStep,
    Scene,
    SettingDetails,
    VideoPromptSpec,
    VisualSequenceEvent,
)
from .artifact_adapters import PromptDraft, create_output_dto, guide_to_string, video_prompt_to_json
from .batching import run_batches, ProgressCallback
from .gateway import ModelGateway
from .settings import BATCH_SIZE, CLIP_DURATION_SECONDS, FADE_IN_TRANSITION, HARD_CUT_TRANSITION
from .templates import PromptTemplates, DEFAULT_TEMPLATES

MAX_VISUAL_EVENTS = 3


# ---------- Scene objectives ----------

def scene_objective(index: int, total: int) -> str:
    """Narrative purpose of a scene from its position in the story."""
    position = index / total
    if index == 1:
        return "Establish the main character's core dream, inner desire, or the central theme of the story."
    if position <= 0.25:
        return "Introduce the character's world, their daily life, or the initial setting."
    if position <= 0.5:
        return "Introduce the first obstacle, an emotional shift, or an inciting incident that pushes the character to act."
    if position <= 0.75:
        return "Build tension towards the climax. The character takes decisive action or faces a major challenge."
    if index == total - 1:
        return "Depict the story's climax, the peak of action or emotion, or a major turning point/revelation."
    if index == total:
        return "Show the resolution, the aftermath, or a final emotional echo that resonates with the opening scene."
    return "Continue the narrative flow, developing the plot and characters logically from the previous scene."


def scene_id_for(index: int) -> str:
    return f"scene_{index:02d}"


# ---------- Post-processing ----------

def finalize_prompt(draft: PromptDraft, index: int, request: GenerationRequest) -> CompiledPrompt:
    """Enforce the invariants the model cannot be trusted with.

    Args:
        draft: Prompt as returned by the model
        index: 1-based position of the scene in the whole story
        request: Run parameters (aspect ratio, image prompt flag)

    Returns:
        CompiledPrompt with id, duration, aspect ratio and transition fixed,
        voiceover removed, and the image prompt kept only when requested
    """
    raw = draft.video_prompt

    if index == 1:
        transition = FADE_IN_TRANSITION
    else:
        transition = HARD_CUT_TRANSITION

    video_prompt = VideoPromptSpec(
        scene_id=scene_id_for(index),
        objective_in_scene=raw.objective_in_scene,
        duration=CLIP_DURATION_SECONDS,
        style=raw.style,
        setting=SettingDetails(**raw.setting.model_dump()),
        camera=CameraDetails(**raw.camera.model_dump()),
        visual_sequence=[VisualSequenceEvent(**e.model_dump()) for e in raw.visual_sequence[:MAX_VISUAL_EVENTS]],
        characters=[CharacterDetails(**c.model_dump()) for c in raw.characters],
        character_interaction=raw.character_interaction,
        audio=AudioDetails(ambient_sound=raw.audio.ambient_sound, sfx=raw.audio.sfx),
        aspect_ratio=request.ratio,
        transition_from_previous=transition,
        starting_image_prompt=raw.starting_image_prompt if request.generate_image_prompts else None,
    )
    return CompiledPrompt(scene_summary=draft.scene_summary, video_prompt=video_prompt)


# ---------- Prompt building ----------

def _build_batch_prompt(
    request: GenerationRequest,
    batch_scenes: Sequence[Scene],
    total: int,
    guide: ConsistencyGuide,
    previous: Optional[CompiledPrompt],
    templates: PromptTemplates,
) -> str:
    scenes_text = "\n".join(
        f"Scene {s.index} (Objective: {scene_objective(s.index, total)}): {s.description}"
        for s in batch_scenes
    )

    continuity_context = ""
    if previous is not None:
        continuity_context = templates.prompts_continuity.format(
            previous_prompt_json=video_prompt_to_json(previous.video_prompt)
        )

    image_instruction = templates.prompts_image_instruction if request.generate_image_prompts else ""

    return templates.prompts_batch.format(
        clip_seconds=CLIP_DURATION_SECONDS,
        content_policy=templates.content_policy,
        guide_text=guide_to_string(guide),
        continuity_context=continuity_context,
        scenes_text=scenes_text,
        hard_cut=HARD_CUT_TRANSITION,
        fade_in=FADE_IN_TRANSITION,
        image_instruction=image_instruction,
    )


async def generate_prompts(
    request: GenerationRequest,
    scenes: Sequence[Scene],
    guide: ConsistencyGuide,
    gateway: ModelGateway,
    on_progress: Optional[ProgressCallback] = None,
    cancel_token=None,
    templates: PromptTemplates = DEFAULT_TEMPLATES,
) -> List[CompiledPrompt]:
    """Compile every scene into a finalized video prompt.

    Args:
        request: Run parameters
        scenes: The full story, in order
        guide: Consistency guide for the run
        gateway: Model gateway
        on_progress: Called after each batch with (percent, message)
        cancel_token: Checked before each batch and each call
        templates: Prompt wording

    Returns:
        One CompiledPrompt per scene, in scene order

    Raises:
        MalformedResponse: If a batch comes back with fewer prompts than scenes
    """
    total = len(scenes)
    OutputModel = create_output_dto(GenerationStep.PROMPTS)

    print(f"🎬 Compiling video prompts for {total} scenes")

    async def produce(batch_start: int, batch_count: int, compiled_so_far: List[CompiledPrompt]) -> List[CompiledPrompt]:
        batch_scenes = scenes[batch_start:batch_start + batch_count]
        previous = compiled_so_far[-1] if compiled_so_far else None

        prompt = _build_batch_prompt(request, batch_scenes, total, guide, previous, templates)
        response = await gateway.send(prompt, OutputModel, cancel_token=cancel_token, step="prompts")

        if len(response.prompts) < len(batch_scenes):
            raise MalformedResponse(
                f"Asked for {len(batch_scenes)} video prompts, the AI returned {len(response.prompts)}. Please try again."
            )

        compiled = [
            finalize_prompt(draft, batch_start + offset + 1, request)
            for offset, draft in enumerate(response.prompts[:len(batch_scenes)])
        ]
        print(f"  ✅ Scenes {batch_start + 1}-{batch_start + batch_count}: {len(compiled)} prompts")
        return compiled

    return await run_batches(
        total,
        BATCH_SIZE,
        produce,
        on_progress=on_progress,
        message=lambda done, total: f"Step 3/3: Writing detailed prompts... ({done}/{total})",
        cancel_token=cancel_token,
    )
