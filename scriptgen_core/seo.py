"""
SEO and thumbnail helpers.

Each helper is one structured call over the finished story and its
consistency guide.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from pydantic import Field, create_model

from .artifact import ConsistencyGuide, Scene, StrictModel
from .artifact_adapters import guide_to_string, story_to_string
from .gateway import ModelGateway
from .templates import PromptTemplates, DEFAULT_TEMPLATES

THUMBNAIL_TEXT_COUNT = 3

TitlesOutput = create_model(
    "TitlesOutput",
    titles=(List[str], Field(..., description="3 video titles")),
    __base__=StrictModel,
)
DescriptionOutput = create_model(
    "DescriptionOutput",
    description=(str, Field(..., description="The full video description")),
    __base__=StrictModel,
)
TagsOutput = create_model(
    "TagsOutput",
    tags=(str, Field(..., description="Comma-separated tags, no space after commas")),
    __base__=StrictModel,
)
ThumbnailTextsOutput = create_model(
    "ThumbnailTextsOutput",
    texts=(List[str], Field(..., description="3 rewritten thumbnail headlines")),
    __base__=StrictModel,
)
ThumbnailPromptsOutput = create_model(
    "ThumbnailPromptsOutput",
    prompts=(List[str], Field(..., description="3 image generator prompts")),
    __base__=StrictModel,
)


def _require_guide(guide: Optional[ConsistencyGuide]) -> ConsistencyGuide:
    if guide is None:
        raise ValueError("A consistency guide is required. Generate the guide first.")
    return guide


def _context(scenes: Sequence[Scene], guide: Optional[ConsistencyGuide], templates: PromptTemplates) -> str:
    return templates.seo_context.format(
        story_text=story_to_string(scenes),
        guide_text=guide_to_string(_require_guide(guide)),
    )


def normalize_tags(tags: str) -> str:
    """'a, b ,,c' -> 'a,b,c'"""
    return ",".join(tag.strip() for tag in tags.split(",") if tag.strip())


async def generate_seo_titles(scenes, guide, gateway: ModelGateway, cancel_token=None,
                              templates: PromptTemplates = DEFAULT_TEMPLATES) -> List[str]:
    prompt = templates.seo_titles.format(context=_context(scenes, guide, templates))
    response = await gateway.send(prompt, TitlesOutput, cancel_token=cancel_token, step="seo")
    return response.titles


async def generate_seo_description(scenes, guide, gateway: ModelGateway, cancel_token=None,
                                   templates: PromptTemplates = DEFAULT_TEMPLATES) -> str:
    prompt = templates.seo_description.format(context=_context(scenes, guide, templates))
    response = await gateway.send(prompt, DescriptionOutput, cancel_token=cancel_token, step="seo")
    return response.description


async def generate_seo_tags(scenes, guide, gateway: ModelGateway, cancel_token=None,
                            templates: PromptTemplates = DEFAULT_TEMPLATES) -> str:
    prompt = templates.seo_tags.format(context=_context(scenes, guide, templates))
    response = await gateway.send(prompt, TagsOutput, cancel_token=cancel_token, step="seo")
    return normalize_tags(response.tags)


async def generate_improved_thumbnail_texts(
    scenes: Sequence[Scene],
    guide: Optional[ConsistencyGuide],
    original_texts: Sequence[str],
    gateway: ModelGateway,
    cancel_token=None,
    templates: PromptTemplates = DEFAULT_TEMPLATES,
) -> List[str]:
    """Rewrite up to 3 user texts as thumbnail headlines.

    Always returns exactly 3 upper-cased strings; missing ones are empty.
    """
    originals = "\n".join(
        f"{i}. {text or '(empty)'}" for i, text in enumerate(original_texts, start=1)
    ) or "(no text provided)"

    prompt = templates.thumbnail_texts.format(
        context=_context(scenes, guide, templates),
        original_texts=originals,
    )
    response = await gateway.send(prompt, ThumbnailTextsOutput, cancel_token=cancel_token, step="seo")

    texts = [t.strip().upper() for t in response.texts[:THUMBNAIL_TEXT_COUNT]]
    texts += [""] * (THUMBNAIL_TEXT_COUNT - len(texts))
    return texts


async def generate_thumbnail_prompts(
    scenes: Sequence[Scene],
    guide: Optional[ConsistencyGuide],
    improved_texts: Sequence[str],
    gateway: ModelGateway,
    cancel_token=None,
    templates: PromptTemplates = DEFAULT_TEMPLATES,
) -> List[str]:
    """Image generator prompts for 3 thumbnails, styled after the guide."""
    texts = [t for t in improved_texts if t.strip()]
    prompt = templates.thumbnail_prompts.format(
        guide_text=guide_to_string(_require_guide(guide)),
        story_text=story_to_string(scenes),
        thumbnail_texts="\n".join(f"- {t}" for t in texts) or "(no text, full-frame image)",
    )
    response = await gateway.send(prompt, ThumbnailPromptsOutput, cancel_token=cancel_token, step="seo")
    return response.prompts
