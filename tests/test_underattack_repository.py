import logging
import time
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine, text

from teknumbot.memory import Memory
from teknumbot.underattack.migration import migrate
from teknumbot.underattack.repository import (
    UnderAttack,
    UnderAttackEntry,
    parse_entry,
)


@pytest.fixture
def store(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'underattack.sqlite'}")
    migrate(engine)
    result = UnderAttack(engine, Memory(), logging.getLogger("test-underattack"))
    result.set_status(1, True, datetime.now() + timedelta(hours=1), 1002)
    yield result
    engine.dispose()


def test_get_entry(store):
    entry = store.get_entry(1)
    assert entry.is_under_attack is True
    assert entry.expires_at > datetime.now()
    assert entry.notification_message_id == 1002
    assert entry.group_id == 1


def test_get_entry_not_exists_returns_empty_and_creates_later(store):
    store.create_delay = 0.0
    entry = store.get_entry(20)
    assert entry.is_under_attack is False
    assert entry.group_id == 0

    count = 0
    for _ in range(100):
        with store.engine.connect() as conn:
            count = conn.execute(text("SELECT COUNT(*) FROM under_attack WHERE group_id = 20")).scalar()
        if count:
            break
        time.sleep(0.05)
    assert count == 1


def test_create_new_entry(store):
    store.create_entry(2)
    entry = store.get_entry(2)
    assert entry.group_id == 2
    assert entry.is_under_attack is False
    assert entry.notification_message_id == 0


def test_create_entry_keeps_existing(store):
    store.create_entry(1)
    entry = store.get_entry(1)
    assert entry.is_under_attack is True
    assert entry.notification_message_id == 1002


def test_set_under_attack_status(store):
    expires = datetime.now() + timedelta(minutes=30)
    store.set_status(3, True, expires, 1003)
    entry = store.get_entry(3)
    assert entry.is_under_attack is True
    assert entry.notification_message_id == 1003
    assert entry.expires_at == expires


def test_set_status_updates_existing(store):
    store.set_status(1, False, datetime.now(), 0)
    entry = store.get_entry(1)
    assert entry.is_under_attack is False
    assert entry.notification_message_id == 0


def test_are_we(store):
    attacked = store.are_we(1)
    assert attacked is True
    cached = store.are_we(1)
    assert cached == attacked
    assert parse_entry(store.memory.get("underattack:1")).notification_message_id == 1002


def test_are_we_uses_cache(store):
    expired = UnderAttackEntry(
        group_id=5,
        is_under_attack=True,
        notification_message_id=7,
        expires_at=datetime.now() - timedelta(minutes=1),
        updated_at=datetime.now(),
    )
    store.memory.set("underattack:5", expired.to_json().encode())
    assert store.are_we(5) is False


def test_entry_json_round_trip():
    entry = UnderAttackEntry(
        group_id=9,
        is_under_attack=True,
        notification_message_id=1002,
        expires_at=datetime(2022, 8, 2, 10, 30),
        updated_at=datetime(2022, 8, 2, 10, 0),
    )
    assert parse_entry(entry.to_json()) == entry
    assert parse_entry(entry.to_json().encode()) == entry


def test_parse_entry_accepts_utc_suffix():
    entry = parse_entry('{"GroupID":1,"IsUnderAttack":true,"NotificationMessageID":3,'
                        '"ExpiresAt":"2020-08-02T00:00:00Z","UpdatedAt":"2020-08-02T00:00:00Z"}')
    assert entry.expires_at.year == 2020
    assert entry.active() is False


def test_parse_entry_rejects_invalid():
    with pytest.raises(ValueError):
        parse_entry("invalid")