"""Telegram bot implementation.

Drives the same reading delivery as the voice skill, keeping the
session cursor in each user's ``user_data``.
"""

import logging
import re

from telegram import BotCommand, Update
from telegram.ext import (
    Application,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from .config import Config
from .delivery import DeliveryStateMachine, Signal, Turn, TurnResult
from .models import SessionState
from .orthocal import OrthocalClient
from .speech import to_plain_text

logger = logging.getLogger(__name__)

CONTINUE_WORDS = re.compile(r"^\s*(yes|yeah|yep|next|continue|go on)\W*$", re.I)
DECLINE_WORDS = re.compile(r"^\s*(no|nope|no thanks)\W*$", re.I)


class OrthodoxDailyBot:
    """Telegram bot that reads the daily scriptures in parts."""

    def __init__(self, config: Config, delivery: DeliveryStateMachine | None = None):
        self.config = config
        if delivery is None:
            client = OrthocalClient(
                calendar=config.calendar,
                base_url=config.orthocal_base_url,
                timeout=config.request_timeout,
            )
            delivery = DeliveryStateMachine(
                client, config.telegram_budget(), config.tz
            )
        self.delivery = delivery

    async def _post_init(self, app: Application) -> None:
        """Post-initialization: set up commands."""
        commands = [
            BotCommand("start", "About today"),
            BotCommand("readings", "Read today's scriptures (or /readings YYYY-MM-DD)"),
            BotCommand("next", "Continue the current reading"),
            BotCommand("day", "About a day (/day YYYY-MM-DD)"),
            BotCommand("help", "How to use this bot"),
        ]
        await app.bot.set_my_commands(commands)
        logger.info("Bot commands configured")

    def run_turn(self, turn: Turn, user_data: dict) -> TurnResult:
        """Run one turn against a user's session bag, rewriting it in place."""
        state = SessionState.from_attributes(user_data)
        result = self.delivery.handle(turn, state)
        if result.keep_session:
            return result
        user_data.clear()
        if result.session is not None:
            user_data.update(result.session.to_attributes())
        return result

    async def _reply(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE, turn: Turn
    ) -> None:
        if not update.message:
            return
        user_id = update.effective_user.id if update.effective_user else "unknown"
        logger.info(f"{turn.signal.name} from user {user_id}")

        result = self.run_turn(turn, context.user_data)
        if result.speech:
            await update.message.reply_text(
                to_plain_text(result.speech), disable_web_page_preview=True
            )

    @staticmethod
    def _date_arg(context: ContextTypes.DEFAULT_TYPE) -> str | None:
        return context.args[0] if context.args else None

    async def start_command(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Handle /start command."""
        await self._reply(update, context, Turn(Signal.LAUNCH))

    async def readings_command(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Handle /readings command."""
        await self._reply(
            update, context, Turn(Signal.SCRIPTURES, self._date_arg(context))
        )

    async def day_command(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Handle /day command."""
        await self._reply(update, context, Turn(Signal.DAY, self._date_arg(context)))

    async def next_command(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Handle /next command."""
        await self._reply(update, context, Turn(Signal.CONTINUE))

    async def help_command(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Handle /help command."""
        await self._reply(update, context, Turn(Signal.HELP))

    async def stop_command(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Handle /stop command."""
        await self._reply(update, context, Turn(Signal.STOP))

    async def text_message(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Treat "yes"/"next" and "no" replies like the voice intents."""
        if not update.message or not update.message.text:
            return
        text = update.message.text
        if CONTINUE_WORDS.match(text):
            await self._reply(update, context, Turn(Signal.CONTINUE))
        elif DECLINE_WORDS.match(text):
            await self._reply(update, context, Turn(Signal.DECLINE))
        else:
            logger.debug(f"Ignoring free text: {text[:40]!r}")

    async def unknown_command(
        self, update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Handle unknown commands - silently ignore."""
        if not update.message:
            return
        user_id = update.effective_user.id if update.effective_user else "unknown"
        command = update.message.text.split()[0] if update.message.text else "unknown"
        logger.info(f"Unknown command {command} from user {user_id} - ignoring")

    async def _error_handler(
        self, update: object, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Log errors caused by updates."""
        logger.exception(f"Exception while handling an update: {context.error}")

    def build_app(self) -> Application:
        """Build the Telegram application."""
        if not self.config.telegram_bot_token:
            raise ValueError("TELEGRAM_BOT_TOKEN environment variable is required")

        app = (
            Application.builder()
            .token(self.config.telegram_bot_token)
            .post_init(self._post_init)
            .build()
        )

        app.add_handler(CommandHandler("start", self.start_command))
        app.add_handler(CommandHandler("readings", self.readings_command))
        app.add_handler(CommandHandler("day", self.day_command))
        app.add_handler(CommandHandler("next", self.next_command))
        app.add_handler(CommandHandler("help", self.help_command))
        app.add_handler(CommandHandler("stop", self.stop_command))
        app.add_handler(MessageHandler(filters.COMMAND, self.unknown_command))
        app.add_handler(
            MessageHandler(filters.TEXT & ~filters.COMMAND, self.text_message)
        )

        app.add_error_handler(self._error_handler)

        return app

    def run_polling(self) -> None:
        """Run bot in polling mode."""
        logger.info("Building application...")
        app = self.build_app()
        logger.info("Starting polling...")
        app.run_polling(allowed_updates=Update.ALL_TYPES)
