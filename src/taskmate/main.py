"""Taskmate entry point."""

import asyncio
import logging
import sys

from dotenv import find_dotenv, load_dotenv

USAGE = "Usage: taskmate [bot|cli]"


def main() -> None:
    """Main entry point."""
    load_dotenv(find_dotenv(usecwd=True))
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    command = sys.argv[1] if len(sys.argv) > 1 else "cli"

    if command == "bot":
        from .config import Settings
        from .logging import configure_logger
        from .telegram import TelegramBot

        try:
            settings = Settings.from_env()
            configure_logger(settings.log_dir)
            bot = TelegramBot(settings=settings)
        except ValueError as e:
            print(f"❌ Error: {e}")
            sys.exit(1)
        bot.run()
        return

    if command == "cli":
        from .cli import run_cli

        asyncio.run(run_cli())
        return

    print(USAGE)
    sys.exit(2)


if __name__ == "__main__":
    main()
