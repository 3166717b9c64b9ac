"""CLI entry-point — run the screening interview in the terminal.

Usage:
    python -m psychodiag.main
    # or via pyproject entry-point:  psychodiag
"""

from __future__ import annotations

from dotenv import load_dotenv

from psychodiag.bootstrap import build_bot
from psychodiag.channel.console import ConsoleChannel
from psychodiag.logging_config import setup_logging
from psychodiag.models.selection import start_data

load_dotenv()

CONSOLE_USER = {"id": 0, "first_name": "Гость", "is_bot": False}
CONSOLE_CHAT = 0


def main() -> None:
    setup_logging()

    channel = ConsoleChannel()
    bot = build_bot(channel)
    session_key = str(CONSOLE_USER["id"])
    bot.store.remember_user(session_key, CONSOLE_USER)

    bot.send_welcome(CONSOLE_CHAT, CONSOLE_USER["first_name"])
    print("\nВведите номер варианта. 'quit' — выйти.")

    while True:
        try:
            choice = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nСессия прервана.")
            break

        if choice.lower() == "quit":
            print("\nСессия прервана.")
            break

        data = channel.button_data(choice)
        if not bot.dispatcher.is_active(session_key):
            if data == start_data(bot.instrument.kind):
                bot.dispatcher.start(session_key, CONSOLE_CHAT, CONSOLE_USER)
            continue

        status = (
            bot.dispatcher.select(session_key, data)
            if data is not None
            else bot.dispatcher.message(session_key, choice)
        )
        if status is not None and status.completed:
            print(f"\nИтоговый балл: {status.total}")
            break

    bot.close()


if __name__ == "__main__":
    main()
