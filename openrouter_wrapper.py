import json
import os
import re
import asyncio
import aiohttp
import requests
from datetime import datetime
from typing import Optional, Union, List, Literal, Type, Tuple, Dict, Any
from pydantic import BaseModel, ValidationError

ReasoningEffort = Literal["minimal", "low", "medium", "high"]

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
OPENROUTER_KEY_URL = "https://openrouter.ai/api/v1/auth/key"

_api_key: Optional[str] = None


# ---------- Errors ----------

class LLMError(Exception):
    """Base class for every failure raised by the model gateway."""


class InvalidCredential(LLMError):
    """No API key configured, or the provider rejected it."""


class MalformedResponse(LLMError):
    """The model answered, but not in the shape we asked for."""


class TransportFailure(LLMError):
    """Network error or non-success answer from the provider."""


class Cancelled(LLMError):
    """The caller's cancellation token fired."""


# ---------- Credential ----------

def configure(api_key: str) -> None:
    """Set the API key used by every subsequent call."""
    global _api_key
    if not api_key or not api_key.strip():
        raise InvalidCredential("API key must not be empty.")
    _api_key = api_key.strip()


def configure_from_env() -> bool:
    """Configure from OPENROUTER_API_KEY if present. Returns True when configured."""
    key = os.getenv("OPENROUTER_API_KEY", "")
    if key.strip():
        configure(key)
        return True
    return False


def clear_credential() -> None:
    global _api_key
    _api_key = None


def _require_api_key() -> str:
    if not _api_key:
        raise InvalidCredential("No API key configured. Call configure() with your OpenRouter key first.")
    return _api_key


def validate_api_key(api_key: str, timeout: float = 10.0) -> bool:
    """Check a key against the provider without spending generation tokens.

    Returns:
        True if the provider accepts the key, False otherwise (including network errors)
    """
    if not api_key:
        return False
    try:
        response = requests.get(
            OPENROUTER_KEY_URL,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout,
        )
    except requests.RequestException as e:
        print(f"API key validation failed: {e}")
        return False
    return response.status_code == 200


# ---------- Call log ----------

def _log_llm_call(start_time: datetime, end_time: datetime, tokens_in: int, tokens_out: int, function_name: str, prompt_preview: str):
    """Append one line per LLM call to the call log."""
    duration = (end_time - start_time).total_seconds()
    log_line = f"{start_time.strftime('%Y-%m-%d %H:%M:%S')} | {function_name} | Duration: {duration:.2f}s | Tokens In: {tokens_in} | Tokens Out: {tokens_out} | Prompt: {prompt_preview}\n"

    log_path = os.getenv("LLM_LOG_PATH", "llm_log.txt")
    with open(log_path, "a", encoding="utf-8") as f:
        f.write(log_line)


def _count_tokens_in_messages(messages: List[Dict[str, Any]]) -> int:
    """Rough token count estimation for input messages"""
    total_chars = 0
    for msg in messages:
        content = msg.get("content", "")
        if isinstance(content, str):
            total_chars += len(content)
        elif isinstance(content, list):
            for item in content:
                if isinstance(item, dict) and item.get("type") == "text":
                    total_chars += len(item.get("text", ""))
    # ~4 characters per token
    return total_chars // 4


# ---------- Request building ----------

def image_part_to_content(mime_type: str, data: str) -> Dict[str, Any]:
    """Build an image content item from a base64 payload."""
    return {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{data}"}}


def _build_messages(
    context: Optional[Union[str, List[Dict[str, Any]]]],
    text: str,
    images: Optional[List[Tuple[str, str]]] = None
) -> List[Dict[str, Any]]:
    """Build message list for API request.

    Args:
        context: System message (string) or conversation history (list)
        text: User's text prompt
        images: Optional (mime_type, base64_data) pairs attached to the user message

    Returns:
        List of message dicts ready for API
    """
    messages = []

    if context:
        if isinstance(context, str):
            messages.append({"role": "system", "content": context})
        elif isinstance(context, list):
            messages.extend(context)

    content = [{"type": "text", "text": text}]
    for mime_type, data in images or []:
        content.append(image_part_to_content(mime_type, data))

    messages.append({"role": "user", "content": content})
    return messages


def _build_payload(
    model: str,
    messages: List[Dict[str, Any]],
    reasoning_effort: Optional[ReasoningEffort],
    reasoning_exclude: bool,
    response_format: Optional[Type[BaseModel]],
    temperature: Optional[float] = None,
    tools: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Build API request payload.

    Args:
        model: Model identifier
        messages: Message list from _build_messages()
        reasoning_effort: Reasoning level or None
        reasoning_exclude: Whether to exclude reasoning from response
        response_format: Optional Pydantic model for structured output
        temperature: Optional sampling temperature
        tools: Optional function declarations the model may call

    Returns:
        Payload dict ready for API request
    """
    payload = {"model": model, "messages": messages}

    if reasoning_effort is not None:
        payload["reasoning"] = {"effort": reasoning_effort, "exclude": reasoning_exclude}

    if temperature is not None:
        payload["temperature"] = temperature

    if response_format is not None:
        payload["response_format"] = {
            "type": "json_schema",
            "json_schema": {
                "name": response_format.__name__,
                "schema": response_format.model_json_schema()
            }
        }

    if tools:
        payload["tools"] = tools

    return payload


# ---------- Response parsing ----------

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def unwrap_json_text(text: str) -> str:
    """Strip a surrounding markdown code fence, if any."""
    return _FENCE_RE.sub("", text.strip()).strip()


def _parse_structured_response(message_content: Optional[str], response_format: Type[BaseModel]) -> BaseModel:
    """Validate message content against the expected Pydantic model.

    Raises:
        MalformedResponse: If the content is empty, not JSON, or does not match the model
    """
    if not message_content or not isinstance(message_content, str):
        raise MalformedResponse("The AI returned an empty response. Please try again.")
    try:
        return response_format.model_validate_json(unwrap_json_text(message_content))
    except ValidationError as e:
        print(f"Invalid JSON for {response_format.__name__}: {str(e)[:200]}")
        raise MalformedResponse("Could not parse the JSON response from the AI. Please try again.") from e


def _extract_function_call(message: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Return {"name", "args"} for the first tool call in an assistant message."""
    tool_calls = message.get("tool_calls") or []
    if not tool_calls:
        return None
    function = tool_calls[0].get("function") or {}
    raw_args = function.get("arguments") or "{}"
    try:
        args = json.loads(raw_args) if isinstance(raw_args, str) else dict(raw_args)
    except (json.JSONDecodeError, TypeError, ValueError):
        args = {}
    return {"name": function.get("name", ""), "args": args}


# ---------- HTTP ----------

async def _post_chat_completion(api_key: str, payload: Dict[str, Any]) -> Tuple[int, str]:
    """POST the payload and return (status, body text)."""
    async with aiohttp.ClientSession() as session:
        async with session.post(
            OPENROUTER_URL,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            data=json.dumps(payload),
        ) as response:
            return response.status, await response.text()


def _check_envelope(status: int, body: str) -> Dict[str, Any]:
    """Turn an HTTP answer into the response dict, or raise the matching error."""
    if status in (401, 403):
        raise InvalidCredential("The API key was rejected. Check that it is valid and has credit.")

    try:
        full_response = json.loads(body)
    except json.JSONDecodeError:
        raise TransportFailure(f"Non-JSON response from API (status {status}).")

    if not isinstance(full_response, dict):
        raise TransportFailure(f"Unexpected response shape from API (status {status}).")

    if status >= 400 or "error" in full_response:
        error = full_response.get("error") or {}
        message = error.get("message") if isinstance(error, dict) else str(error)
        code = error.get("code") if isinstance(error, dict) else None
        if code in (401, 403):
            raise InvalidCredential("The API key was rejected. Check that it is valid and has credit.")
        raise TransportFailure(f"Request to the AI failed (status {status}): {message or 'unknown error'}")

    return full_response


async def _send_with_cancellation(api_key: str, payload: Dict[str, Any], cancel_token) -> Tuple[int, str]:
    """Run the HTTP request, aborting it if the token fires while it is in flight."""
    if cancel_token is None:
        return await _post_chat_completion(api_key, payload)

    task = asyncio.ensure_future(_post_chat_completion(api_key, payload))
    unregister = cancel_token.on_cancel(task.cancel)
    try:
        return await task
    except asyncio.CancelledError:
        if cancel_token.is_cancelled():
            raise Cancelled("Aborted by user.")
        raise
    finally:
        unregister()


async def llm_async(
    model: str,
    text: str,
    context: Optional[Union[str, List[Dict[str, Any]]]] = None,
    images: Optional[List[Tuple[str, str]]] = None,
    reasoning_effort: Optional[ReasoningEffort] = "minimal",
    reasoning_exclude: bool = True,
    response_format: Optional[Type[BaseModel]] = None,
    temperature: Optional[float] = None,
    tools: Optional[List[Dict[str, Any]]] = None,
    cancel_token=None,
    logging: bool = True,
    _caller: str = "async",
) -> Tuple[Union[str, BaseModel], Optional[Dict[str, Any]], dict, List[Dict[str, Any]]]:
    """
    OpenRouter chat-completion call with structured output and cooperative cancellation.

    Args:
        model: The model to use (e.g., "google/gemini-2.5-flash")
        text: The main text prompt
        context: Optional system message (string) or list of prior messages
        images: Optional (mime_type, base64_data) pairs for the user message
        reasoning_effort: "minimal" | "low" | "medium" | "high", or None to omit
        reasoning_exclude: If True (default), request that intermediate reasoning not be returned
        response_format: Optional Pydantic model class for structured output
        temperature: Optional sampling temperature
        tools: Optional function declarations (OpenAI tool format)
        cancel_token: Optional token with is_cancelled() and on_cancel(callback)
        logging: If True (default), append call details to the call log

    Returns:
        Tuple of (message_content, function_call, full_response, message_history).
        message_content is a validated model instance when response_format is given.

    Raises:
        InvalidCredential, MalformedResponse, TransportFailure, Cancelled
    """
    api_key = _require_api_key()

    messages = _build_messages(context, text, images)
    payload = _build_payload(model, messages, reasoning_effort, reasoning_exclude, response_format, temperature, tools)

    # Last check before the request leaves
    if cancel_token is not None and cancel_token.is_cancelled():
        raise Cancelled("Aborted by user.")

    start_time = datetime.now() if logging else None
    try:
        status, body = await _send_with_cancellation(api_key, payload, cancel_token)
    except aiohttp.ClientError as e:
        raise TransportFailure(f"Request to the AI failed: {e}") from e
    except asyncio.TimeoutError as e:
        raise TransportFailure("Request to the AI timed out.") from e

    full_response = _check_envelope(status, body)

    try:
        assistant_message = full_response['choices'][0]['message']
        message_content = assistant_message.get('content') or ""
    except (KeyError, IndexError, TypeError):
        raise TransportFailure("The AI response did not contain a message.")

    function_call = _extract_function_call(assistant_message)

    if response_format is not None:
        message_content = _parse_structured_response(message_content, response_format)

    updated_messages = messages.copy()
    updated_messages.append(assistant_message)

    if logging and start_time:
        end_time = datetime.now()
        usage = full_response.get('usage', {})
        tokens_in = usage.get('prompt_tokens') or _count_tokens_in_messages(messages)
        tokens_out = usage.get('completion_tokens', 0)
        prompt_preview = text[:20] + "..." if len(text) > 20 else text
        _log_llm_call(start_time, end_time, tokens_in, tokens_out, _caller, prompt_preview.replace("\n", " "))

    return message_content, function_call, full_response, updated_messages
