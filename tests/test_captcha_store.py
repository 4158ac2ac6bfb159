import json
from datetime import datetime, timedelta, timezone

import pytest

from teknumbot.captcha.store import TIMEOUT, CaptchaRecord, CaptchaStore, parse_captcha
from teknumbot.memory import EntryNotFoundError, Memory


def _record(**changes):
    values = dict(
        answer="123",
        expiry=datetime(2022, 8, 2, 10, 0, tzinfo=timezone.utc),
        chat_id=-100,
        question_id="42",
        additional_messages=["7"],
        user_messages=[],
    )
    values.update(changes)
    return CaptchaRecord(**values)


@pytest.fixture
def store():
    return CaptchaStore(Memory())


def test_record_round_trip():
    record = _record(user_messages=["8", "9"])
    assert parse_captcha(record.to_json()) == record


def test_record_json_keys():
    decoded = json.loads(_record().to_json())
    assert set(decoded) == {
        "answer",
        "expiry",
        "chat_id",
        "question_id",
        "additional_messages",
        "user_messages",
    }
    assert decoded["answer"] == "123"


def test_parse_null_lists_as_empty():
    record = parse_captcha(
        b'{"answer":"1","expiry":"2022-08-02T10:00:00Z","chat_id":1,'
        b'"question_id":"2","additional_messages":null,"user_messages":null}'
    )
    assert record.additional_messages == []
    assert record.user_messages == []
    assert record.expiry == datetime(2022, 8, 2, 10, 0, tzinfo=timezone.utc)


def test_parse_rejects_non_object():
    with pytest.raises(ValueError):
        parse_captcha("[1, 2]")


def test_remaining_seconds_within_timeout():
    record = _record(expiry=datetime.now(timezone.utc) + TIMEOUT)
    assert 0 < record.remaining_seconds() <= TIMEOUT.total_seconds()
    expired = _record(expiry=datetime.now(timezone.utc) - timedelta(seconds=30))
    assert expired.remaining_seconds() < 0


def test_user_exists_after_register(store):
    assert store.user_exists(5, -100) is False
    store.register(-100, 5)
    store.register(-100, 6)
    assert store.user_exists(5, -100) is True
    assert store.user_exists(6, -100) is True
    assert store.user_exists(5, -200) is False


def test_user_exists_does_not_match_prefix(store):
    store.register(-100, 55)
    assert store.user_exists(5, -100) is False


def test_save_load_and_has_captcha(store):
    assert store.has_captcha(-100, 5) is False
    record = _record()
    store.save(-100, 5, record)
    assert store.has_captcha(-100, 5) is True
    assert store.load(-100, 5) == record


def test_load_missing_raises(store):
    with pytest.raises(EntryNotFoundError):
        store.load(-100, 5)


def test_remove_user(store):
    store.register(-100, 5)
    store.register(-100, 6)
    store.save(-100, 5, _record())
    store.remove_user(5, -100)
    assert store.user_exists(5, -100) is False
    assert store.user_exists(6, -100) is True
    assert store.has_captcha(-100, 5) is False


def test_remove_user_without_record(store):
    store.register(-100, 5)
    store.remove_user(5, -100)
    assert store.user_exists(5, -100) is False


def test_remove_user_without_list_raises(store):
    with pytest.raises(EntryNotFoundError):
        store.remove_user(5, -100)


def test_add_messages_are_persisted(store):
    record = _record()
    store.add_additional_message(-100, 5, record, 11)
    store.add_user_message(-100, 5, record, 12)
    loaded = store.load(-100, 5)
    assert loaded.additional_messages == ["7", "11"]
    assert loaded.user_messages == ["12"]
    assert loaded == record