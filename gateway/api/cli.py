"""
Interactive CLI adapter for the chat gateway.

Architectural role:
- Exposes the same engine as the HTTP endpoint from a terminal, for operators
  checking credentials and deployments without the browser client.
- Delegates all upstream work to `gateway.core.engine.process_request`.

Interface responsibilities:
- One-shot mode: `chat-gateway "prompt" [--image]` prints one envelope.
- Interactive mode: keeps a local conversation and sends it on every turn.

Hard trigger handling:
- `:image <prompt>` sends one explicit image request.
- `exit` / `quit` ends the session; `clear chat` empties local history.

Error handling strategy:
- Engine failures already arrive as envelopes and are printed as content.
- EOF and keyboard interrupts terminate the loop without traceback output.

Side effects:
- Reads `.env` and the process environment once at startup.
- Writes to stdout.
"""

import argparse
import asyncio
import logging
import sys

from gateway.core.engine import process_request
from gateway.core.gateway_types import ConversationTurn, GatewayRequest
from gateway.llm.provider_config import load_config


IMAGE_COMMAND_PREFIX = ":image "


def render(result) -> str:
    if result.error_kind is not None:
        return f"[{result.error_kind.value}] {result.content}"
    if result.is_image:
        return f"Image: {result.content}"
    return result.content


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chat-gateway", description="Talk to the chat gateway from a terminal.")
    parser.add_argument("prompt", nargs="?", help="Send one prompt and exit.")
    parser.add_argument("--image", action="store_true", help="Generate an image from the prompt.")
    parser.add_argument("--verbose", action="store_true", help="Log gateway activity at INFO or finer, overriding LOG_LEVEL.")
    return parser


def run_once(config, prompt: str, image: bool) -> int:
    request = GatewayRequest(turns=(ConversationTurn("user", prompt),), image_mode=image)
    result = asyncio.run(process_request(request, config))
    print(render(result))
    return 0 if result.ok else 1


def run_interactive(config) -> int:
    history: list[ConversationTurn] = []

    print("Chat gateway started. (Type 'exit' to quit)\n")
    print(f"Text deployment:  {config.text_deployment or '(not set)'}")
    print(f"Image deployment: {config.image_deployment or '(not set)'}")
    print("-" * 60)

    while True:

        try:
            line = input("You: ").strip()

        except (EOFError, KeyboardInterrupt):
            print("\nBye.")
            return 0

        if not line:
            continue

        if line.lower() in ("exit", "quit"):
            return 0

        if line.lower() in ("empty chat", "clear chat"):
            history.clear()
            print("Chat cleared.")
            continue

        image_mode = line.startswith(IMAGE_COMMAND_PREFIX)
        if image_mode:
            line = line[len(IMAGE_COMMAND_PREFIX):].strip()
            if not line:
                continue

        history.append(ConversationTurn("user", line))
        request = GatewayRequest(turns=tuple(history), image_mode=image_mode)
        result = asyncio.run(process_request(request, config))

        print("\n" + render(result))
        print("\n" + "-" * 60 + "\n")

        # Image URLs and failures stay out of the conversation sent upstream.
        if result.ok and not result.is_image:
            history.append(ConversationTurn("assistant", result.content))


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config()

    level = getattr(logging, config.log_level, None)
    if not isinstance(level, int):
        level = logging.WARNING
    if args.verbose:
        level = min(level, logging.INFO)

    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(levelname)s %(name)s - %(message)s",
    )

    if args.prompt:
        return run_once(config, args.prompt, args.image)
    return run_interactive(config)


if __name__ == "__main__":
    sys.exit(main())
