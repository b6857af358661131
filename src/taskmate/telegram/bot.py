"""Telegram bot integration for Taskmate."""

import logging

from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup, Update, User
from telegram.constants import ChatAction, ParseMode
from telegram.error import TelegramError
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from ..assistant import build_assistant, describe
from ..config import Settings
from ..errors import DeliveryError
from ..gateway.base import ActionClick, Card, InboundMessage, OutgoingMessage
from ..logging import get_logger

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = """
📋 *Taskmate*

I turn chat messages into tasks and remind people before they are due.

*Try:*
• remind me to ship the report in 30 minutes
• remind @alexkim to review the PR in 2 hours
• show my pending tasks

*Commands:*
/start - Show this message
/tasks - List your tasks (pending, completed, all)
/cancel - Drop the task I'm asking you about
"""

MAX_MESSAGE_LENGTH = 4096
MAX_CALLBACK_ANSWER_LENGTH = 200
CALLBACK_SEPARATOR = ":"


def truncate_message(text: str, max_length: int = MAX_MESSAGE_LENGTH) -> str:
    """Truncate message to fit Telegram limits."""
    if len(text) <= max_length:
        return text
    return text[: max_length - 20] + "\n... [truncated]"


def build_keyboard(card: Card) -> InlineKeyboardMarkup | None:
    """One row of inline buttons per card; callback data is ``action:value``."""
    if not card.buttons:
        return None
    row = [
        InlineKeyboardButton(
            button.label,
            callback_data=f"{button.action_id}{CALLBACK_SEPARATOR}{button.value}",
        )
        for button in card.buttons
    ]
    return InlineKeyboardMarkup([row])


def parse_callback_data(data: str | None) -> tuple[str, str] | None:
    """Split ``action:value`` callback data. Returns None if malformed."""
    if not data or CALLBACK_SEPARATOR not in data:
        return None
    action_id, value = data.split(CALLBACK_SEPARATOR, 1)
    if not action_id or not value:
        return None
    return action_id, value


def user_id_for(user: User) -> str:
    """Handles are what people type in mentions; fall back to the numeric id."""
    return user.username or str(user.id)


class TelegramGateway:
    """Sends messages and cards through a Telegram bot."""

    def __init__(self, bot: Bot | None = None) -> None:
        self.bot = bot

    async def send(self, channel_id: str, message: OutgoingMessage) -> None:
        if self.bot is None:
            raise DeliveryError("Telegram bot is not initialized")

        if isinstance(message, Card):
            text, markup = message.text, build_keyboard(message)
        else:
            text, markup = message, None

        try:
            await self.bot.send_message(
                chat_id=channel_id,
                text=truncate_message(text),
                reply_markup=markup,
            )
        except TelegramError as e:
            raise DeliveryError(f"Telegram send to {channel_id} failed: {e}") from e


class TelegramBot:
    """Telegram bot for Taskmate."""

    def __init__(
        self,
        token: str | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.token = token or self.settings.telegram_token
        if not self.token:
            raise ValueError("TELEGRAM_TOKEN not set")

        self.gateway = TelegramGateway()
        self.assistant, self.scheduler = build_assistant(self.settings, self.gateway)
        self.json_logger = get_logger()
        self._app: Application | None = None

    def _get_chat_id(self, update: Update) -> str:
        """Get chat_id as string from update."""
        assert update.effective_chat is not None
        return str(update.effective_chat.id)

    async def _handle_start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /start command."""
        assert update.message is not None
        self.json_logger.log("telegram_start", chat_id=self._get_chat_id(update))
        await update.message.reply_text(WELCOME_MESSAGE, parse_mode=ParseMode.MARKDOWN)

    async def _handle_cancel(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /cancel command."""
        assert update.message is not None and update.effective_user is not None
        await self.assistant.handle_message(
            InboundMessage(
                text="cancel",
                author_id=user_id_for(update.effective_user),
                channel_id=self._get_chat_id(update),
            )
        )

    async def _handle_tasks(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle /tasks [scope] command."""
        assert update.effective_user is not None
        scope = context.args[0].lower() if context.args else "pending"
        await self.assistant.list_tasks(
            self._get_chat_id(update), user_id_for(update.effective_user), scope
        )

    async def _handle_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle incoming text messages."""
        assert update.message is not None and update.message.text is not None
        assert update.effective_user is not None

        chat_id = self._get_chat_id(update)
        thread_id = None
        if update.message.is_topic_message and update.message.message_thread_id:
            thread_id = str(update.message.message_thread_id)

        self.json_logger.log(
            "telegram_message",
            chat_id=chat_id,
            message_length=len(update.message.text),
        )

        try:
            await update.message.chat.send_action(ChatAction.TYPING)
        except TelegramError as e:
            logger.debug(f"Typing indicator failed: {e}")

        await self.assistant.handle_message(
            InboundMessage(
                text=update.message.text,
                author_id=user_id_for(update.effective_user),
                channel_id=chat_id,
                thread_id=thread_id,
                timestamp=update.message.date,
            )
        )

    async def _handle_callback(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Handle inline keyboard button presses."""
        query = update.callback_query
        assert query is not None

        parsed = parse_callback_data(query.data)
        if parsed is None or update.effective_chat is None:
            await query.answer("Unknown button.")
            return

        action_id, value = parsed
        reply = await self.assistant.handle_action(
            ActionClick(
                action_id=action_id,
                value=value,
                user_id=user_id_for(query.from_user),
                channel_id=self._get_chat_id(update),
            )
        )
        # The answer is only shown to the user who pressed the button
        await query.answer(reply[:MAX_CALLBACK_ANSWER_LENGTH])

    async def _handle_error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        logger.error("Unhandled error in Telegram handler", exc_info=context.error)
        self.json_logger.log("telegram_error", error=str(context.error))

    async def _post_init(self, application: Application) -> None:
        """Called after Application.initialize()."""
        self.gateway.bot = application.bot
        bot_username = application.bot.username
        self.assistant.bot_id = bot_username
        self.assistant.engine.bot_id = bot_username
        self.scheduler.start()
        self.json_logger.log("startup", mode="telegram", bot=bot_username, **describe(self.settings))

    async def _post_shutdown(self, application: Application) -> None:
        """Called after Application.shutdown()."""
        self.scheduler.stop()
        self.assistant.store.close()

    def build_app(self) -> Application:
        """Build the Telegram application."""
        self._app = (
            Application.builder()
            .token(self.token)
            .post_init(self._post_init)
            .post_shutdown(self._post_shutdown)
            .build()
        )

        self._app.add_handler(CommandHandler("start", self._handle_start))
        self._app.add_handler(CommandHandler("cancel", self._handle_cancel))
        self._app.add_handler(CommandHandler("tasks", self._handle_tasks))
        self._app.add_handler(CallbackQueryHandler(self._handle_callback))
        self._app.add_handler(
            MessageHandler(filters.TEXT & ~filters.COMMAND, self._handle_message)
        )
        self._app.add_error_handler(self._handle_error)

        return self._app

    def run(self) -> None:
        """Run the bot (blocking): webhook mode when WEBHOOK_URL is set, else polling."""
        app = self.build_app()

        if self.settings.webhook_url:
            logger.info(f"Starting Telegram bot (webhook on port {self.settings.port})...")
            app.run_webhook(
                listen="0.0.0.0",
                port=self.settings.port,
                secret_token=self.settings.webhook_secret,
                webhook_url=self.settings.webhook_url,
            )
            return

        logger.info("Starting Telegram bot (polling)...")
        app.run_polling()
