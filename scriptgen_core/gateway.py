"""
Model Gateway

The single capability every generator depends on: send a prompt (and
optionally a response model), get back validated structured data or free text.
OpenRouterGateway is the production implementation on top of
openrouter_wrapper; tests substitute their own object with the same send().
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Type, Union

from pydantic import BaseModel

from openrouter_wrapper import llm_async

from . import settings
from .artifact import FunctionCall, ImagePart


class ChatReply(BaseModel):
    """Free-text answer plus the named intent the model signalled, if any."""
    text: str
    function_call: Optional[FunctionCall] = None


class ModelGateway(ABC):
    """Interface for the generative model.

    send() returns an instance of response_format when one is given, otherwise
    a ChatReply. Implementations raise the openrouter_wrapper error types.
    """

    @abstractmethod
    async def send(
        self,
        prompt: str,
        response_format: Optional[Type[BaseModel]] = None,
        *,
        cancel_token=None,
        context: Optional[Union[str, List[Dict[str, Any]]]] = None,
        images: Optional[Sequence[ImagePart]] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
        step: str = "generation",
    ) -> Union[BaseModel, ChatReply]:
        ...


class OpenRouterGateway(ModelGateway):
    """Gateway backed by the OpenRouter chat-completions API."""

    def __init__(self, model: Optional[str] = None, temperature: Optional[float] = None,
                 reasoning_effort: Optional[str] = None, logging: bool = True):
        self.model = model
        self.temperature = temperature
        self.reasoning_effort = reasoning_effort or settings.REASONING_EFFORT
        self.logging = logging

    def _temperature_for(self, step: str) -> float:
        if self.temperature is not None:
            return self.temperature
        return settings.CHAT_TEMPERATURE if step == "chat" else settings.GENERATION_TEMPERATURE

    async def send(
        self,
        prompt: str,
        response_format: Optional[Type[BaseModel]] = None,
        *,
        cancel_token=None,
        context: Optional[Union[str, List[Dict[str, Any]]]] = None,
        images: Optional[Sequence[ImagePart]] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
        step: str = "generation",
    ) -> Union[BaseModel, ChatReply]:
        content, function_call, _, _ = await llm_async(
            model=self.model or settings.select_model_for_step(step),
            text=prompt,
            context=context,
            images=[(img.mime_type, img.data) for img in images or []],
            reasoning_effort=self.reasoning_effort,
            response_format=response_format,
            temperature=self._temperature_for(step),
            tools=tools,
            cancel_token=cancel_token,
            logging=self.logging,
            _caller=step,
        )

        if response_format is not None:
            return content

        return ChatReply(
            text=content or "",
            function_call=FunctionCall(**function_call) if function_call else None,
        )
