#!/usr/bin/env python3

import asyncio
import signal
import sys

from dotenv import load_dotenv

from openrouter_wrapper import configure_from_env
from scriptgen_core import (
    ChatMessage,
    GenerationRequest,
    GeneratorStep,
    OpenRouterGateway,
    ScriptGenerator,
    get_chat_response,
    wants_to_generate,
    save_results,
)

load_dotenv()


def print_state(state):
    if state.is_running:
        print(f"[{state.progress:3d}%] {state.step_message}")
    elif state.step == GeneratorStep.ERROR:
        print(f"Error: {state.error}")


async def brainstorm(gateway) -> list:
    """Talk the idea through with the AI director. Type 'go' to write the script."""
    history = []
    print("Describe your video idea. Type 'go' when you are ready to write the script.\n")
    while True:
        text = input("You: ").strip()
        if text.lower() == "go" and history:
            return history
        if not text:
            continue

        history.append(ChatMessage(role="user", text=text))
        reply = await get_chat_response(history, gateway)
        history.append(ChatMessage(role="ai", text=reply.text, function_call=reply.function_call))
        print(f"\nDirector: {reply.text}\n")

        if wants_to_generate(reply):
            answer = input("Generate the script now? [y/N] ").strip().lower()
            if answer == "y":
                return history


def ask_int(prompt: str, default: int) -> int:
    value = input(f"{prompt} [{default}]: ").strip()
    return int(value) if value else default


async def main():
    if not configure_from_env():
        print("OPENROUTER_API_KEY is not set. Add it to your environment or .env file.")
        sys.exit(1)

    gateway = OpenRouterGateway()

    # Usage: generate_script.py "idea" [minutes] [seconds] [aspect_ratio] [--images]
    args = [a for a in sys.argv[1:] if a != "--images"]
    with_images = "--images" in sys.argv[1:]

    if args:
        history = [ChatMessage(role="user", text=args[0])]
        minutes = int(args[1]) if len(args) > 1 else 0
        seconds = int(args[2]) if len(args) > 2 else 32
        aspect_ratio = args[3] if len(args) > 3 else "16:9"
    else:
        history = await brainstorm(gateway)
        minutes = ask_int("Minutes", 0)
        seconds = ask_int("Seconds", 32)
        aspect_ratio = input("Aspect ratio [16:9]: ").strip() or "16:9"
        with_images = input("Generate starting image prompts? [y/N] ").strip().lower() == "y"

    request = GenerationRequest(
        chat_history=history,
        minutes=minutes,
        seconds=seconds,
        aspect_ratio=aspect_ratio,
        generate_image_prompts=with_images,
    )

    generator = ScriptGenerator(gateway)
    generator.subscribe(print_state)

    # Ctrl-C stops the run at the next check point
    if sys.platform != "win32":
        asyncio.get_running_loop().add_signal_handler(signal.SIGINT, generator.cancel)

    print(f"Generating a {request.total_seconds}s script")
    print("=" * 50)

    state = await generator.run_all(request)

    print("=" * 50)
    if state.step != GeneratorStep.COMPLETE:
        print(f"Generation stopped: {state.error}")
        if state.scenes:
            save_results(state)
        sys.exit(1)

    print(f"Generated {len(state.scenes)} scenes and {len(state.results)} video prompts")
    save_results(state)


if __name__ == "__main__":
    asyncio.run(main())
