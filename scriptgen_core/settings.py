import os
from dotenv import load_dotenv

# Load .env from the working directory if present
load_dotenv()

OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY", "")

DEFAULT_MODEL = os.getenv("SCRIPTGEN_MODEL", "google/gemini-2.5-flash")
CHAT_MODEL = os.getenv("SCRIPTGEN_CHAT_MODEL", DEFAULT_MODEL)
REASONING_EFFORT = os.getenv("SCRIPTGEN_REASONING", "minimal")

GENERATION_TEMPERATURE = float(os.getenv("SCRIPTGEN_TEMPERATURE", "0.7"))
CHAT_TEMPERATURE = float(os.getenv("SCRIPTGEN_CHAT_TEMPERATURE", "0.8"))

# Each scene becomes one video clip of this length
CLIP_DURATION_SECONDS = 8
BATCH_SIZE = 4

FADE_IN_TRANSITION = "Fade in from black"
HARD_CUT_TRANSITION = "hard cut"


def select_model_for_step(step: str) -> str:
    """Pick the model for a pipeline step ("chat", "story", "guide", "prompts", "seo")."""
    if step == "chat":
        return CHAT_MODEL
    return DEFAULT_MODEL


def has_api_key() -> bool:
    return bool(OPENROUTER_API_KEY.strip())
