import logging

from teknumbot.ascii_art import AsciiCommand
from teknumbot.telegram import Chat, Message, TelegramError, User


class _Bot:
    def __init__(self):
        self.sent = []

    def send(self, chat, text, parse_mode=None, reply_to=None, allow_without_reply=False, **kw):
        if text == "<pre></pre>":
            raise TelegramError("Bad Request: message must be non-empty", 400)
        self.sent.append(text)


def _msg(payload):
    return Message(id=1, chat=Chat(id=2), sender=User(id=3), payload=payload)


def test_empty_payload_sends_nothing():
    bot = _Bot()
    AsciiCommand(bot, logging.getLogger("t")).handle(_msg(""))
    assert bot.sent == []


def test_sends_art_in_pre():
    bot = _Bot()
    AsciiCommand(bot, logging.getLogger("t")).handle(_msg("123"))
    assert bot.sent[0].startswith("<pre>") and bot.sent[0].endswith("</pre>")


def test_unsupported_text_replies():
    bot = _Bot()
    AsciiCommand(bot, logging.getLogger("t")).handle(_msg("???"))
    assert bot.sent == ["That text is not supported yet"]