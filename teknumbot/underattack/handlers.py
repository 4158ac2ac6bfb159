"""The /underattack and /disableunderattack commands."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import httpx
from sqlalchemy.exc import SQLAlchemyError

from ..memory import EntryNotFoundError
from ..shared import handle_bot_error
from ..telegram import TelegramError
from ..utils import is_admin
from .repository import CACHE_PREFIX

_FAILURES = (TelegramError, httpx.HTTPError, SQLAlchemyError, EntryNotFoundError, ValueError)

_ADMIN_ONLY = "Cuma admin yang boleh jalanin command ini. Ada baiknya kamu ping adminnya langsung :)"
_ALREADY_ON = "Mode under attack sudah menyala. Untuk mematikan, kirim /disableunderattack"
_DURATION = timedelta(minutes=30)
_WIB = timezone(timedelta(hours=7), "WIB")


def _notice(expires_at: datetime) -> str:
    until = expires_at.astimezone(_WIB).strftime("%H:%M %Z")
    return (
        "Grup ini dalam kondisi under attack sampai pukul "
        + until
        + ". Semua yang baru masuk ke grup ini akan langsung di ban selamanya."
        "Untuk bisa bergabung, tunggu sampai under attack mode berakhir, atau hubungi admin grup.\n\n"
    )


class UnderAttackCommands:
    """Lets group admins switch under-attack mode on and off."""

    def __init__(self, store, memory, bot, logger) -> None:
        self.store = store
        self.memory = memory
        self.bot = bot
        self.logger = logger

    def _allowed(self, message) -> bool:
        sender = message.sender
        if message.private() or sender is None or sender.is_bot:
            return False
        try:
            admins = self.bot.admins_of(message.chat)
        except _FAILURES as error:
            handle_bot_error(error, self.logger, self.bot, message)
            return False
        if is_admin(admins, sender):
            return True
        try:
            self.bot.send(message.chat, _ADMIN_ONLY, reply_to=message, allow_without_reply=True)
        except _FAILURES as error:
            handle_bot_error(error, self.logger, self.bot, message)
        return False

    def enable(self, message) -> None:
        """Turn under-attack mode on for thirty minutes and pin a notice."""
        if not self._allowed(message):
            return
        chat = message.chat
        try:
            if self.store.are_we(chat.id):
                self.bot.send(chat, _ALREADY_ON, reply_to=message, allow_without_reply=True)
                return
            expires_at = datetime.now() + _DURATION
            notification = self.bot.send(chat, _notice(expires_at))
            self.store.set_status(chat.id, True, expires_at, notification.id)
            self.memory.delete(f"{CACHE_PREFIX}{chat.id}")
            self.bot.pin(notification)
        except _FAILURES as error:
            handle_bot_error(error, self.logger, self.bot, message)

    def disable(self, message) -> None:
        """Turn under-attack mode off and unpin its notice."""
        if not self._allowed(message):
            return
        chat = message.chat
        try:
            if not self.store.are_we(chat.id):
                return
            entry = self.store.get_entry(chat.id)
            self.store.set_status(chat.id, False, datetime.now(), 0)
            self.memory.delete(f"{CACHE_PREFIX}{chat.id}")
            self.bot.unpin(chat, entry.notification_message_id)
        except _FAILURES as error:
            handle_bot_error(error, self.logger, self.bot, message)