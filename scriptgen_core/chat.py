"""
Idea conversation with the AI director.

The director asks questions about the user's idea and, once it has enough to
work with, signals through the offer_to_generate_script tool that the script
can be written.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from openrouter_wrapper import TransportFailure, image_part_to_content

from .artifact import ChatMessage
from .gateway import ChatReply, ModelGateway
from .templates import PromptTemplates, DEFAULT_TEMPLATES

OFFER_TOOL_NAME = "offer_to_generate_script"

OFFER_TO_GENERATE_TOOL = {
    "type": "function",
    "function": {
        "name": OFFER_TOOL_NAME,
        "description": "Call this function when you have gathered enough information about the user's video idea "
                       "(characters, setting, basic plot) and are ready to offer to generate the script.",
        "parameters": {"type": "object", "properties": {}},
    },
}


def _to_api_message(message: ChatMessage) -> Dict[str, Any]:
    if message.role == "ai":
        return {"role": "assistant", "content": message.text}

    content: List[Dict[str, Any]] = [{"type": "text", "text": message.text}]
    for image in message.images:
        content.append(image_part_to_content(image.mime_type, image.data))
    return {"role": "user", "content": content}


async def get_chat_response(
    chat_history: Sequence[ChatMessage],
    gateway: ModelGateway,
    cancel_token=None,
    templates: PromptTemplates = DEFAULT_TEMPLATES,
) -> ChatReply:
    """Get the director's next turn for the conversation.

    The last message must be the user's. Earlier turns go in as context,
    prefixed by the director's system instruction.

    Returns:
        ChatReply; a network failure yields the fallback apology instead
    """
    if not chat_history or chat_history[-1].role != "user":
        raise ValueError("The conversation must end with a user message.")

    *earlier, latest = chat_history
    context = [{"role": "system", "content": templates.chat_system.format(language=templates.language)}]
    context.extend(_to_api_message(m) for m in earlier)

    try:
        reply = await gateway.send(
            latest.text,
            cancel_token=cancel_token,
            context=context,
            images=latest.images,
            tools=[OFFER_TO_GENERATE_TOOL],
            step="chat",
        )
    except TransportFailure as e:
        print(f"⚠️  Chat request failed: {e}")
        return ChatReply(text=templates.chat_fallback)

    if reply.function_call and not reply.text:
        # The tool call may come without any text
        reply = reply.model_copy(update={"text": "I think I have enough to go on. Shall I write the script?"})
    return reply


def wants_to_generate(reply: ChatReply) -> bool:
    """True when the director offered to generate the script."""
    return reply.function_call is not None and reply.function_call.name == OFFER_TOOL_NAME
