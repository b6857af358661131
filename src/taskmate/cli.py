"""Console interface for Taskmate."""

import asyncio
import shlex

from .assistant import Assistant, build_assistant, describe
from .config import Settings
from .gateway.base import ActionClick, Card, InboundMessage, OutgoingMessage
from .logging import configure_logger, get_logger
from .scheduler import ReminderScheduler

BANNER = """
╔══════════════════════════════════════════╗
║           📋 Taskmate v0.1.0             ║
║       Team task & reminder assistant     ║
╚══════════════════════════════════════════╝

Commands:
  /click <action> <task id>  - Press a card button
  /tasks [scope]             - List your tasks (pending, completed, all)
  /cancel                    - Drop the task being drafted
  /exit, /quit               - Exit the CLI
  /help                      - Show this help

Type your message and press Enter, e.g. "remind me to ship the report in 30 minutes".
"""

CONSOLE_CHANNEL = "console"
CONSOLE_USER = "console_user"


def render(message: OutgoingMessage) -> str:
    """Render a message or card as terminal text."""
    if not isinstance(message, Card):
        return message
    lines = ["┌" + "─" * 39, *(f"│ {line}" for line in message.text.splitlines())]
    if message.buttons:
        lines.append("│")
        for button in message.buttons:
            lines.append(f"│ [{button.label}]  /click {button.action_id} {button.value}")
    lines.append("└" + "─" * 39)
    return "\n".join(lines)


class ConsoleGateway:
    """Prints outgoing messages to stdout."""

    async def send(self, channel_id: str, message: OutgoingMessage) -> None:
        print(f"\n{render(message)}")


class CLI:
    """Interactive command-line interface for Taskmate."""

    def __init__(
        self,
        assistant: Assistant,
        scheduler: ReminderScheduler | None = None,
        user_id: str = CONSOLE_USER,
        channel_id: str = CONSOLE_CHANNEL,
    ) -> None:
        self.assistant = assistant
        self.scheduler = scheduler
        self.user_id = user_id
        self.channel_id = channel_id
        self.logger = get_logger()

    async def _handle_command(self, command: str) -> bool:
        """Handle a special command. Returns True if should continue, False to exit."""
        try:
            parts = shlex.split(command)
        except ValueError:
            parts = command.split()
        cmd = parts[0].lower() if parts else ""

        if cmd in ("/exit", "/quit", "exit", "quit"):
            print("\n👋 Goodbye!")
            self.logger.log("session_end", chat_id=self.channel_id)
            return False

        if cmd == "/help":
            print(BANNER)
            return True

        if cmd == "/click":
            if len(parts) != 3:
                print("Usage: /click <action> <task id>")
                return True
            reply = await self.assistant.handle_action(
                ActionClick(
                    action_id=parts[1],
                    value=parts[2],
                    user_id=self.user_id,
                    channel_id=self.channel_id,
                )
            )
            print(f"\n{reply}")
            return True

        if cmd == "/tasks":
            scope = parts[1] if len(parts) > 1 else "pending"
            await self.assistant.list_tasks(self.channel_id, self.user_id, scope)
            return True

        if cmd == "/cancel":
            await self._process_message("cancel")
            return True

        print(f"Unknown command: {cmd}. Type /help for the list.")
        return True

    async def _process_message(self, text: str) -> None:
        await self.assistant.handle_message(
            InboundMessage(text=text, author_id=self.user_id, channel_id=self.channel_id)
        )

    async def run(self) -> None:
        """Run the interactive CLI."""
        print(BANNER)
        print(f"You are @{self.user_id} in #{self.channel_id}\n")
        self.logger.log("session_start", chat_id=self.channel_id)

        if self.scheduler:
            self.scheduler.start()

        try:
            while True:
                try:
                    # Read in a thread so the reminder sweep keeps running
                    user_input = (await asyncio.to_thread(input, "you> ")).strip()

                    if not user_input:
                        continue

                    if user_input.startswith("/") or user_input.lower() in ("exit", "quit"):
                        if not await self._handle_command(user_input):
                            break
                        continue

                    await self._process_message(user_input)

                except KeyboardInterrupt:
                    print("\n👋 Goodbye!")
                    self.logger.log("session_interrupt", chat_id=self.channel_id)
                    break

                except EOFError:
                    print("\n👋 Goodbye!")
                    break
        finally:
            if self.scheduler:
                self.scheduler.stop()
            self.assistant.store.close()


async def run_cli() -> None:
    """Run the CLI with settings from the environment."""
    settings = Settings.from_env()
    configure_logger(settings.log_dir)

    if not settings.groq_api_key:
        print("⚠️  GROQ_API_KEY not set: only commands and button clicks will work.")

    assistant, scheduler = build_assistant(settings, ConsoleGateway())
    get_logger().log("startup", mode="cli", **describe(settings))

    cli = CLI(assistant, scheduler)
    await cli.run()
