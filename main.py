#!/usr/bin/env python3
"""WeddingFlow planning assistant CLI."""

import argparse
import asyncio
import logging
import sys

from config.settings import Settings
from schemas.context import Identity
from orchestrator import DialogueController


async def run(controller: DialogueController, identity: Identity, session_id: str, message: str = None):
    """Process one message, or read messages from stdin until EOF or "exit"."""
    if message:
        response = await controller.handle_user_message(session_id, message, identity)
        print(response.content)
        return

    print("WeddingFlow assistant. Type 'exit' to quit.\n")
    while True:
        try:
            text = await asyncio.to_thread(input, "you> ")
        except EOFError:
            break
        text = text.strip()
        if not text:
            continue
        if text.lower() in ("exit", "quit"):
            break
        response = await controller.handle_user_message(session_id, text, identity)
        print(f"\nassistant> {response.content}\n")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="WeddingFlow Assistant - natural-language commands for wedding planners"
    )
    parser.add_argument(
        "--message",
        "-m",
        type=str,
        help="Process a single message and exit (interactive mode otherwise)"
    )
    parser.add_argument(
        "--provider",
        type=str,
        choices=["openai", "anthropic", "offline"],
        default="openai",
        help="LLM provider (default: openai; falls back to offline without an API key)"
    )
    parser.add_argument(
        "--model",
        type=str,
        help="Override the provider's default model"
    )
    parser.add_argument(
        "--company",
        type=str,
        default="co-1",
        help="Company id of the signed-in planner (default: co-1)"
    )
    parser.add_argument(
        "--user",
        type=str,
        default="planner-1",
        help="User id of the signed-in planner (default: planner-1)"
    )
    parser.add_argument(
        "--client",
        type=str,
        help="Client id to put in focus, e.g. c-100"
    )
    parser.add_argument(
        "--seed",
        type=str,
        help="YAML seed file for the in-memory store (default: data/demo_seed.yaml)"
    )
    parser.add_argument(
        "--session",
        type=str,
        help="Resume a logged conversation by id (requires --log-conversations)"
    )
    parser.add_argument(
        "--list-sessions",
        action="store_true",
        help="List the company's logged conversations and exit"
    )
    parser.add_argument(
        "--log-conversations",
        action="store_true",
        help="Log conversations to the SQLite database"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    settings_kwargs = {
        "llm_provider": args.provider,
        "llm_model": args.model,
        "memory_enabled": args.log_conversations or args.list_sessions,
        "verbose": args.verbose,
    }
    if args.seed:
        settings_kwargs["seed_path"] = args.seed
    settings = Settings(**settings_kwargs)

    controller = DialogueController(settings=settings)
    identity = Identity(user_id=args.user, company_id=args.company)

    if args.list_sessions:
        for conversation in controller.list_sessions(identity):
            print(f"{conversation.conversation_id}  {conversation.user_id}  {conversation.updated_at:%Y-%m-%d %H:%M}")
        return

    try:
        session = controller.open_session(identity, client_id=args.client, session_id=args.session)
        asyncio.run(run(controller, identity, session.session_id, args.message))
    except KeyboardInterrupt:
        print()
    except Exception as e:
        print(f"Error processing message: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
