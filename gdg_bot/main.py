"""Terminal chat with the GDG assistant, for development.

Messages go through the same command handling and orchestrator as the
WhatsApp webhook; replies are printed instead of sent.

Usage:
    python -m gdg_bot.main                    # quiet
    python -m gdg_bot.main --debug            # show model/tool/API logging
    python -m gdg_bot.main --user +15550001   # pick the session key
"""

from __future__ import annotations

import argparse
import logging

from dotenv import load_dotenv

from gdg_bot.agent import create_orchestrator
from gdg_bot.dispatcher import MessageDispatcher
from gdg_bot.models import SendResult
from gdg_bot.session import SessionStore

logger = logging.getLogger(__name__)


class _ConsoleMessenger:
    """Prints replies instead of delivering them over WhatsApp."""

    def send(self, recipient: str, text: str) -> SendResult:
        print(f"\nBot: {text}\n")
        return SendResult(success=True, message_id="console")


def _configure_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
    )
    if not debug:
        for noisy in ("httpx", "httpcore", "twilio"):
            logging.getLogger(noisy).setLevel(logging.WARNING)
    logging.getLogger("gdg_bot").setLevel(logging.DEBUG if debug else logging.WARNING)


def main():
    parser = argparse.ArgumentParser(description="GDG WhatsApp assistant CLI")
    parser.add_argument("--debug", action="store_true", help="Show all log messages")
    parser.add_argument("--user", default="cli-user", help="Session key to chat as")
    args = parser.parse_args()

    load_dotenv()
    _configure_logging(debug=args.debug)

    print("\n" + "=" * 60)
    print("  GDG Event Assistant - CLI Chat")
    print("=" * 60)
    print("  Try 'hi', 'help', 'status' or 'reset'; 'quit' to exit.")
    print("=" * 60 + "\n")

    store = SessionStore()
    dispatcher = MessageDispatcher(store, create_orchestrator(store), _ConsoleMessenger())
    logger.info("Chatting as %s", args.user)

    while True:
        try:
            user_input = input("You: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\n\nGoodbye!")
            break

        if not user_input:
            continue
        if user_input.lower() in ("exit", "quit", "q"):
            print("\nGoodbye! 👋")
            break

        dispatcher.handle(args.user, user_input)


if __name__ == "__main__":
    main()
