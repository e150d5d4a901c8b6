"""
Export utilities for generated scripts

This module provides:
- JSON rendering of a single video prompt (what the user copies into a video model)
- JSON rendering of all compiled prompts
- Saving a finished run (scenes, guide, prompts) to disk
"""

import os
import json
from datetime import datetime
from typing import Optional, Sequence

from .artifact import CompiledPrompt
from .artifact_adapters import video_prompt_to_json
from .state import PipelineState


def prompt_to_json(result: CompiledPrompt) -> str:
    """JSON text of one video prompt, without empty optional fields."""
    return video_prompt_to_json(result.video_prompt)


def results_to_json(results: Sequence[CompiledPrompt]) -> str:
    return json.dumps(
        [r.model_dump(mode="json", exclude_none=True) for r in results],
        indent=2,
        ensure_ascii=False,
    )


def save_results(state: PipelineState, path: Optional[str] = None) -> str:
    """Save the run's scenes, guide and compiled prompts as one JSON document.

    Args:
        state: Pipeline state to export
        path: Output file; defaults to data/script_<timestamp>.json

    Returns:
        The path written
    """
    if path is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        path = os.path.join("data", f"script_{timestamp}.json")

    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    document = {
        "step": state.step.value,
        "request": state.request.model_dump(mode="json", exclude={"chat_history": {"__all__": {"images"}}})
        if state.request else None,
        "scenes": [s.model_dump() for s in state.scenes],
        "guide": state.guide.model_dump() if state.guide else None,
        "prompts": [r.model_dump(mode="json", exclude_none=True) for r in state.results],
    }

    with open(path, "w", encoding="utf-8") as f:
        json.dump(document, f, indent=2, ensure_ascii=False)

    print(f"Results saved: {path}")
    return path
