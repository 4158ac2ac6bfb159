"""The /ascii command."""

from __future__ import annotations

from .shared import handle_bot_error
from .telegram import TelegramError
from .utils import generate_ascii


class AsciiCommand:
    """Replies with the command's payload drawn as ASCII art."""

    def __init__(self, bot, logger) -> None:
        self.bot = bot
        self.logger = logger

    def handle(self, message) -> None:
        if not message.payload:
            return
        art = generate_ascii(message.payload)
        try:
            self.bot.send(message.chat, f"<pre>{art}</pre>", parse_mode="HTML", allow_without_reply=True)
        except TelegramError as error:
            if "must be non-empty" not in error.description and "text is empty" not in error.description:
                handle_bot_error(error, self.logger, self.bot, message)
                return
            try:
                self.bot.send(
                    message.chat,
                    "That text is not supported yet",
                    parse_mode="HTML",
                    reply_to=message,
                    allow_without_reply=True,
                )
            except TelegramError as again:
                handle_bot_error(again, self.logger, self.bot, message)