"""
Step 1: story generation.

Writes the scene list in batches; every batch sees the whole story so far and
is told the exact scene range to produce.
"""

from __future__ import annotations

import math
from typing import List, Optional

from openrouter_wrapper import MalformedResponse

from .artifact import GenerationRequest, Scene, GenerationStep
from .artifact_adapters import create_output_dto, story_to_string, transcript_to_string
from .batching import run_batches, ProgressCallback
from .gateway import ModelGateway
from .settings import BATCH_SIZE, CLIP_DURATION_SECONDS
from .templates import PromptTemplates, DEFAULT_TEMPLATES


def scene_count_for(total_seconds: int) -> int:
    """Number of fixed-length clips needed to cover the duration."""
    return math.ceil(total_seconds / CLIP_DURATION_SECONDS)


async def generate_story(
    request: GenerationRequest,
    gateway: ModelGateway,
    on_progress: Optional[ProgressCallback] = None,
    cancel_token=None,
    templates: PromptTemplates = DEFAULT_TEMPLATES,
) -> List[Scene]:
    """Generate the ordered scene list for the requested duration.

    Args:
        request: Run parameters (transcript, duration)
        gateway: Model gateway
        on_progress: Called after each batch with (percent, message)
        cancel_token: Checked before each batch and each call
        templates: Prompt wording

    Returns:
        Scenes with contiguous indices starting at 1

    Raises:
        MalformedResponse: If a batch comes back with fewer scenes than asked for
    """
    if request.total_seconds <= 0:
        raise ValueError("Requested duration must be greater than zero.")

    total_scenes = scene_count_for(request.total_seconds)
    transcript = transcript_to_string(request.chat_history)
    OutputModel = create_output_dto(GenerationStep.STORY)

    print(f"📝 Writing story: {total_scenes} scenes for {request.total_seconds}s")

    async def produce(batch_start: int, batch_count: int, story_so_far: List[Scene]) -> List[Scene]:
        prompt = templates.story_batch.format(
            transcript=transcript,
            total_scenes=total_scenes,
            batch_count=batch_count,
            start_scene=batch_start + 1,
            end_scene=batch_start + batch_count,
            language=templates.language,
            content_policy=templates.content_policy,
            existing_story=story_to_string(story_so_far),
        )
        response = await gateway.send(prompt, OutputModel, cancel_token=cancel_token, step="story")

        if len(response.scenes) < batch_count:
            raise MalformedResponse(
                f"Asked for {batch_count} scenes, the AI returned {len(response.scenes)}. Please try again."
            )

        # Numbering comes from position, not from the model
        drafts = response.scenes[:batch_count]
        first_index = len(story_so_far) + 1
        scenes = [
            Scene(index=first_index + offset, description=draft.description)
            for offset, draft in enumerate(drafts)
        ]
        print(f"  ✅ Scenes {batch_start + 1}-{batch_start + batch_count} written")
        return scenes

    return await run_batches(
        total_scenes,
        BATCH_SIZE,
        produce,
        on_progress=on_progress,
        message=lambda done, total: f"Step 1/3: Writing the story... (scene {done}/{total})",
        cancel_token=cancel_token,
    )
