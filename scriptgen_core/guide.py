"""Step 2: distill the finished story into a consistency guide."""

from __future__ import annotations

from typing import Sequence

from .artifact import ConsistencyGuide, Scene, GenerationStep
from .artifact_adapters import create_output_dto, story_to_string
from .gateway import ModelGateway
from .templates import PromptTemplates, DEFAULT_TEMPLATES


async def generate_consistency_guide(
    scenes: Sequence[Scene],
    gateway: ModelGateway,
    cancel_token=None,
    templates: PromptTemplates = DEFAULT_TEMPLATES,
) -> ConsistencyGuide:
    """Single call over the whole story. Errors propagate unchanged."""
    if not scenes:
        raise ValueError("Cannot build a consistency guide without scenes.")

    print(f"🔎 Analyzing {len(scenes)} scenes for characters, setting and style")

    prompt = templates.guide.format(story_text=story_to_string(scenes))
    guide = await gateway.send(prompt, create_output_dto(GenerationStep.GUIDE), cancel_token=cancel_token, step="guide")

    print("  ✅ Consistency guide ready")
    return guide
