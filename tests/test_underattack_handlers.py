import logging
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine

from teknumbot.memory import EntryNotFoundError, Memory
from teknumbot.telegram import Chat, ChatMember, ChatType, Message, TelegramError, User
from teknumbot.underattack.handlers import UnderAttackCommands
from teknumbot.underattack.migration import migrate
from teknumbot.underattack.repository import UnderAttack

CHAT_ID = -100
ADMIN = User(id=1, first_name="Admin")
MEMBER = User(id=2, first_name="Member")


class FakeBot:
    def __init__(self, fail_admins=False):
        self.fail_admins = fail_admins
        self.sent = []
        self.pinned = []
        self.unpinned = []
        self._next_id = 500

    def admins_of(self, chat):
        if self.fail_admins:
            raise TelegramError("Bad Request: chat not found", 400)
        return [ChatMember(user=ADMIN, status="administrator")]

    def send(self, chat, text, parse_mode=None, reply_to=None,
             disable_web_page_preview=False, allow_without_reply=False):
        self._next_id += 1
        self.sent.append({"text": text, "reply_to": reply_to, "parse_mode": parse_mode})
        return Message(id=self._next_id, chat=chat, text=text)

    def pin(self, message):
        self.pinned.append(message.id)

    def unpin(self, chat, message_id):
        self.unpinned.append((chat.id, message_id))


@pytest.fixture
def setup(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'handlers.sqlite'}")
    migrate(engine)
    memory = Memory()
    logger = logging.getLogger("test-handlers")
    store = UnderAttack(engine, memory, logger)
    store.create_entry(CHAT_ID)
    bot = FakeBot()
    yield UnderAttackCommands(store, memory, bot, logger), store, memory, bot
    engine.dispose()


def _message(sender, chat_type=ChatType.SUPERGROUP):
    return Message(id=10, chat=Chat(id=CHAT_ID, type=chat_type, title="Group"), sender=sender)


def test_private_message_is_ignored(setup):
    commands, store, _, bot = setup
    commands.enable(_message(ADMIN, ChatType.PRIVATE))
    assert bot.sent == []
    assert store.get_entry(CHAT_ID).is_under_attack is False


def test_bot_sender_is_ignored(setup):
    commands, _, _, bot = setup
    commands.enable(_message(User(id=1, is_bot=True)))
    assert bot.sent == []


def test_non_admin_is_refused(setup):
    commands, store, _, bot = setup
    message = _message(MEMBER)
    commands.enable(message)
    assert bot.sent[0]["text"] == (
        "Cuma admin yang boleh jalanin command ini. Ada baiknya kamu ping adminnya langsung :)"
    )
    assert bot.sent[0]["reply_to"] is message
    assert store.get_entry(CHAT_ID).is_under_attack is False


def test_enable_sets_status_and_pins(setup):
    commands, store, memory, bot = setup
    commands.enable(_message(ADMIN))
    assert bot.sent[0]["text"].startswith("Grup ini dalam kondisi under attack sampai pukul ")
    entry = store.get_entry(CHAT_ID)
    assert entry.is_under_attack is True
    assert entry.expires_at > datetime.now() + timedelta(minutes=29)
    assert bot.pinned == [entry.notification_message_id]
    with pytest.raises(EntryNotFoundError):
        memory.get(f"underattack:{CHAT_ID}")


def test_enable_when_already_enabled(setup):
    commands, store, _, bot = setup
    store.set_status(CHAT_ID, True, datetime.now() + timedelta(minutes=10), 77)
    commands.enable(_message(ADMIN))
    assert [item["text"] for item in bot.sent] == [
        "Mode under attack sudah menyala. Untuk mematikan, kirim /disableunderattack"
    ]
    assert bot.pinned == []


def test_disable_unpins_notification(setup):
    commands, store, _, bot = setup
    store.set_status(CHAT_ID, True, datetime.now() + timedelta(minutes=10), 77)
    commands.disable(_message(ADMIN))
    assert bot.unpinned == [(CHAT_ID, 77)]
    entry = store.get_entry(CHAT_ID)
    assert entry.is_under_attack is False
    assert entry.notification_message_id == 0


def test_disable_when_not_enabled_does_nothing(setup):
    commands, _, _, bot = setup
    commands.disable(_message(ADMIN))
    assert bot.sent == []
    assert bot.unpinned == []


def test_enable_then_disable_round_trip(setup):
    commands, store, _, bot = setup
    commands.enable(_message(ADMIN))
    commands.disable(_message(ADMIN))
    assert bot.unpinned == [(CHAT_ID, bot.pinned[0])]
    assert store.are_we(CHAT_ID) is False


def test_admin_lookup_failure_reports(setup):
    commands, store, _, bot = setup
    bot.fail_admins = True
    commands.enable(_message(ADMIN))
    assert bot.sent[0]["text"] == (
        "Oh no, something went wrong with me! Can you guys help me to ping my masters?"
    )
    assert store.get_entry(CHAT_ID).is_under_attack is False