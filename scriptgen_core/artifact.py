from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field, ConfigDict



# ---------- Base (forbid unknown keys) ----------

class StrictModel(BaseModel):
    """Base model that rejects unknown fields to keep outputs clean."""
    model_config = ConfigDict(extra="forbid")


class FrozenModel(StrictModel):
    """Strict and immutable once created."""
    model_config = ConfigDict(extra="forbid", frozen=True)


# ---------- Conversation ----------

class ImagePart(FrozenModel):
    """An image attached to a chat message."""
    mime_type: str = Field(..., description="MIME type, e.g. 'image/png'.")
    data: str = Field(..., description="Base64-encoded image bytes.")


class FunctionCall(FrozenModel):
    """A named intent signalled by the model through a tool call."""
    name: str
    args: Dict[str, Any] = Field(default_factory=dict)


class ChatMessage(FrozenModel):
    """One turn of the idea conversation."""
    role: Literal["user", "ai"]
    text: str
    images: List[ImagePart] = Field(default_factory=list)
    function_call: Optional[FunctionCall] = None


# ---------- Run parameters ----------

class GenerationRequest(FrozenModel):
    """Snapshot of the parameters for one pipeline run."""
    chat_history: List[ChatMessage] = Field(..., description="Idea conversation transcript.")
    minutes: int = Field(0, ge=0, description="Target duration, minutes part.")
    seconds: int = Field(0, ge=0, description="Target duration, seconds part.")
    aspect_ratio: str = Field("16:9", description="Aspect ratio selector, e.g. '16:9 (YouTube)'.")
    generate_image_prompts: bool = Field(False, description="Whether each scene needs a starting image prompt.")

    @property
    def total_seconds(self) -> int:
        return self.minutes * 60 + self.seconds

    @property
    def ratio(self) -> str:
        """The bare ratio token of the selector ('16:9 (YouTube)' -> '16:9')."""
        parts = self.aspect_ratio.split()
        return parts[0] if parts else self.aspect_ratio


# ---------- Story ----------

class Scene(FrozenModel):
    """A narrative beat; one scene becomes one video clip."""
    index: int = Field(..., ge=1, description="1-based position in the story.")
    description: str = Field(..., description="Concise summary of the key visual event of the scene.")


class ConsistencyGuide(FrozenModel):
    """Style, character and setting reference shared by every later stage."""
    characters_and_appearance: str = Field(..., description="Main characters, their appearance, clothing and consistent traits, in English.")
    setting_and_mood: str = Field(..., description="Primary setting, atmosphere, mood and time of day, in English.")
    key_objects_and_style: str = Field(..., description="Recurring key objects, visual style, color palette and art direction, in English.")


# ---------- Video prompt ----------

class SettingDetails(StrictModel):
    location: str
    time_of_day: str
    environment_details: str = Field(..., description="Physical description of the environment.")


class CameraDetails(StrictModel):
    opening_frame: str = Field(..., description="The very first frame of the clip, described precisely.")
    movement: str = Field(..., description="Camera path over the whole clip.")
    angle: str = Field(..., description="e.g. 'Eye-level', 'Low angle'.")
    shot_type: str = Field(..., description="e.g. 'Wide shot', 'Close-up'.")


class VisualSequenceEvent(StrictModel):
    time_range: str = Field(..., description="e.g. '0-3s', '3-8s'.")
    description: str


class CharacterDetails(StrictModel):
    name: str
    description: str = Field(..., description="Appearance, taken from the consistency guide.")
    action: str = Field(..., description="Specific action in this scene.")
    emotion: str = Field(..., description="Specific emotion in this scene.")


class AudioDetails(StrictModel):
    ambient_sound: Optional[str] = None
    sfx: Optional[str] = None


class VideoPromptSpec(StrictModel):
    """Structured description of one fixed-length video clip."""
    scene_id: str = Field(..., description="e.g. 'scene_01'.")
    objective_in_scene: str = Field(..., description="The narrative purpose of this scene.")
    duration: int = Field(..., description="Clip duration in seconds.")
    style: str = Field(..., description="e.g. 'cinematic, golden hour, soft focus, 8k'.")
    setting: SettingDetails
    camera: CameraDetails
    visual_sequence: List[VisualSequenceEvent] = Field(..., max_length=3, description="At most 3 continuous time ranges.")
    characters: List[CharacterDetails] = Field(..., min_length=1)
    character_interaction: Optional[str] = Field(None, description="Dynamic between characters when two or more are present.")
    audio: AudioDetails
    aspect_ratio: str
    transition_from_previous: str = Field(..., description="e.g. 'hard cut', 'Fade in from black'.")
    starting_image_prompt: Optional[str] = Field(None, description="Text-to-image prompt for the opening frame.")


class CompiledPrompt(StrictModel):
    """A scene paired with its finished video prompt."""
    scene_summary: str = Field(..., description="The original scene description.")
    video_prompt: VideoPromptSpec


# ---------- Generation Steps ----------

class GenerationStep(Enum):
    STORY = "story"
    GUIDE = "guide"
    PROMPTS = "prompts"
