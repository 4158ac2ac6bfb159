"""Error reporting helpers."""

from __future__ import annotations

import logging
import os

_log = logging.getLogger(__name__)

_APOLOGY = "Oh no, something went wrong with me! Can you guys help me to ping my masters?"


def _echo(error: BaseException) -> None:
    if os.environ.get("ENVIRONMENT") == "development":
        _log.warning("%s", error)


def handle_error(error: BaseException | None, logger: logging.Logger) -> None:
    """Report an error that has no chat or request attached."""
    if error is None:
        return
    _echo(error)
    logger.error("%s", error, exc_info=error)


def handle_bot_error(error: BaseException | None, logger: logging.Logger, bot, message) -> None:
    """Tell the chat something went wrong and report the error with its message."""
    if error is None:
        return
    _echo(error)
    sender = message.sender
    context = {
        "user": {
            "id": sender.id if sender else 0,
            "name": f"{sender.first_name} {sender.last_name}" if sender else "",
            "username": sender.username if sender else "",
        },
        "message": {"id": message.id, "text": message.text, "unix": message.unixtime},
    }
    try:
        bot.send(message.chat, _APOLOGY, parse_mode="HTML")
    except Exception as send_error:  # noqa: BLE001
        logger.error("%s", send_error, exc_info=send_error, extra={"context": context})
    logger.error("%s", error, exc_info=error, extra={"context": context})


def handle_http_error(error: BaseException | None, logger: logging.Logger, request) -> None:
    """Report an error raised while serving an HTTP request."""
    if error is None:
        return
    _echo(error)
    context = {"http": {"method": request.method, "url": str(request.url)}}
    logger.error("%s", error, exc_info=error, extra={"context": context})