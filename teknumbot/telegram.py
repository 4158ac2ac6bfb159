"""A small Telegram Bot API client and the message types the bot works with."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

API_URL = "https://api.telegram.org"

_MEDIA_KEYS = ("photo", "animation", "video", "document", "sticker", "voice", "video_note")
_RETRY_AFTER = re.compile(r"retry after (\d+)")


class ChatType(str, Enum):
    PRIVATE = "private"
    GROUP = "group"
    SUPERGROUP = "supergroup"
    CHANNEL = "channel"


@dataclass
class User:
    id: int
    first_name: str = ""
    last_name: str = ""
    username: str = ""
    is_bot: bool = False


@dataclass
class Chat:
    id: int
    type: ChatType = ChatType.PRIVATE
    title: str = ""


@dataclass
class Message:
    id: int
    chat: Chat
    sender: User | None = None
    text: str = ""
    payload: str = ""
    unixtime: int = 0
    user_joined: User | None = None
    user_left: User | None = None
    media: str | None = None

    def from_group(self) -> bool:
        """True when the message was sent in a group or supergroup."""
        return self.chat.type in (ChatType.GROUP, ChatType.SUPERGROUP)

    def private(self) -> bool:
        """True when the message was sent in a private chat."""
        return self.chat.type is ChatType.PRIVATE


@dataclass
class ChatMember:
    user: User
    status: str = ""


@dataclass
class StoredMessage:
    chat_id: int
    message_id: str


class TelegramError(Exception):
    """An error reported by the Telegram Bot API."""

    def __init__(self, description: str, code: int = 0) -> None:
        self.description = description
        self.code = code
        super().__init__(f"telegram: {description} ({code})")


def _parse_user(data: dict[str, Any] | None) -> User | None:
    if not data:
        return None
    return User(
        id=data["id"],
        first_name=data.get("first_name", ""),
        last_name=data.get("last_name", ""),
        username=data.get("username", ""),
        is_bot=data.get("is_bot", False),
    )


def parse_message(data: dict[str, Any]) -> Message:
    """Build a Message from the Bot API's JSON object."""
    chat_data = data["chat"]
    chat = Chat(
        id=chat_data["id"],
        type=ChatType(chat_data.get("type", "private")),
        title=chat_data.get("title", ""),
    )
    text = data.get("text", "") or data.get("caption", "")
    payload = ""
    if text.startswith("/"):
        _, _, payload = text.partition(" ")
        payload = payload.strip()
    joined = data.get("new_chat_members") or []
    user_joined = _parse_user(joined[0]) if joined else _parse_user(data.get("new_chat_member"))
    media = next((key for key in _MEDIA_KEYS if key in data), None)
    return Message(
        id=data["message_id"],
        chat=chat,
        sender=_parse_user(data.get("from")),
        text=text,
        payload=payload,
        unixtime=data.get("date", 0),
        user_joined=user_joined,
        user_left=_parse_user(data.get("left_chat_member")),
        media=media,
    )


def retry_after(error: BaseException) -> int:
    """Seconds to wait as told by a rate-limit error, 10 when it says none."""
    found = _RETRY_AFTER.search(str(error))
    return int(found.group(1)) if found else 10


class Bot:
    """A synchronous Telegram Bot API client."""

    def __init__(self, token: str, timeout: float = 10.0) -> None:
        self.timeout = timeout
        self._client = httpx.Client(base_url=f"{API_URL}/bot{token}/", timeout=timeout + 10)

    def __enter__(self) -> Bot:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _call(self, method: str, params: dict[str, Any]) -> Any:
        response = self._client.post(method, json=params)
        try:
            data = response.json()
        except ValueError:
            raise TelegramError(response.reason_phrase, response.status_code) from None
        if not data.get("ok"):
            raise TelegramError(
                data.get("description", response.reason_phrase),
                data.get("error_code", response.status_code),
            )
        return data.get("result")

    def send(
        self,
        chat: Chat | User,
        text: str,
        parse_mode: str | None = None,
        reply_to: Message | None = None,
        disable_web_page_preview: bool = False,
        allow_without_reply: bool = False,
    ) -> Message:
        params: dict[str, Any] = {"chat_id": chat.id, "text": text}
        if parse_mode:
            params["parse_mode"] = parse_mode
        if reply_to is not None:
            params["reply_to_message_id"] = reply_to.id
        if disable_web_page_preview:
            params["disable_web_page_preview"] = True
        if allow_without_reply:
            params["allow_sending_without_reply"] = True
        return parse_message(self._call("sendMessage", params))

    def send_photo(self, chat: Chat | User, url: str) -> Message:
        return parse_message(self._call("sendPhoto", {"chat_id": chat.id, "photo": url}))

    def delete(self, message: StoredMessage) -> None:
        self._call(
            "deleteMessage",
            {"chat_id": message.chat_id, "message_id": int(message.message_id)},
        )

    def ban(self, chat: Chat, user: User, revoke_messages: bool = True) -> None:
        self._call(
            "banChatMember",
            {"chat_id": chat.id, "user_id": user.id, "revoke_messages": revoke_messages},
        )

    def admins_of(self, chat: Chat) -> list[ChatMember]:
        result = self._call("getChatAdministrators", {"chat_id": chat.id})
        return [ChatMember(user=_parse_user(item["user"]), status=item.get("status", "")) for item in result]

    def pin(self, message: Message) -> None:
        self._call("pinChatMessage", {"chat_id": message.chat.id, "message_id": message.id})

    def unpin(self, chat: Chat, message_id: int) -> None:
        self._call("unpinChatMessage", {"chat_id": chat.id, "message_id": message_id})

    def get_updates(self, offset: int = 0, timeout: float | None = None) -> list[dict[str, Any]]:
        wait = self.timeout if timeout is None else timeout
        return self._call("getUpdates", {"offset": offset, "timeout": int(wait)})

    def close(self) -> None:
        self._client.close()