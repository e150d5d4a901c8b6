"""
Video Script Generation Core Module

This module turns an idea conversation into a video production script in
three steps: a scene-by-scene story, a consistency guide, and one structured
video prompt per scene. The ScriptGenerator controller drives the steps with
progress reporting and cancellation.
"""

from .artifact import (
    ChatMessage,
    ImagePart,
    FunctionCall,
    GenerationRequest,
    Scene,
    ConsistencyGuide,
    VideoPromptSpec,
    CompiledPrompt,
    GenerationStep,
    StrictModel
)

from .artifact_adapters import (
    get_completion_status,
    get_next_steps,
    create_output_dto
)

from .cancellation import CancellationToken

from .gateway import (
    ChatReply,
    ModelGateway,
    OpenRouterGateway
)

from .story import generate_story, scene_count_for
from .guide import generate_consistency_guide
from .compiler import generate_prompts, finalize_prompt

from .state import (
    GeneratorStep,
    PipelineState,
    INITIAL_STATE
)

from .generator import ScriptGenerator

from .chat import get_chat_response, wants_to_generate

from .seo import (
    generate_seo_titles,
    generate_seo_description,
    generate_seo_tags,
    generate_improved_thumbnail_texts,
    generate_thumbnail_prompts
)

from .templates import PromptTemplates, DEFAULT_TEMPLATES

from .utils import (
    prompt_to_json,
    results_to_json,
    save_results
)

__all__ = [
    # Core models
    "ChatMessage",
    "ImagePart",
    "FunctionCall",
    "GenerationRequest",
    "Scene",
    "ConsistencyGuide",
    "VideoPromptSpec",
    "CompiledPrompt",
    "GenerationStep",
    "StrictModel",

    # Adapters
    "get_completion_status",
    "get_next_steps",
    "create_output_dto",

    # Gateway and cancellation
    "CancellationToken",
    "ChatReply",
    "ModelGateway",
    "OpenRouterGateway",

    # Generation functions
    "generate_story",
    "scene_count_for",
    "generate_consistency_guide",
    "generate_prompts",
    "finalize_prompt",

    # Controller
    "GeneratorStep",
    "PipelineState",
    "INITIAL_STATE",
    "ScriptGenerator",

    # Conversation and SEO
    "get_chat_response",
    "wants_to_generate",
    "generate_seo_titles",
    "generate_seo_description",
    "generate_seo_tags",
    "generate_improved_thumbnail_texts",
    "generate_thumbnail_prompts",

    # Templates
    "PromptTemplates",
    "DEFAULT_TEMPLATES",

    # Utils
    "prompt_to_json",
    "results_to_json",
    "save_results"
]
