"""Read access to the dukun points collection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

_EPOCH = datetime(1, 1, 1)


@dataclass
class Dukun:
    user_id: int
    first_name: str = ""
    last_name: str = ""
    user_name: str = ""
    points: int = 0
    master: bool = False
    created_at: datetime = _EPOCH
    updated_at: datetime = _EPOCH

    def to_dict(self) -> dict[str, Any]:
        """The JSON form, keyed as the collection is."""
        return {
            "userID": self.user_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "userName": self.user_name,
            "points": self.points,
            "master": self.master,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


def dukun_from_document(document: dict[str, Any]) -> Dukun:
    """Build a Dukun from a stored document."""
    return Dukun(
        user_id=document.get("userID", 0),
        first_name=document.get("firstName", ""),
        last_name=document.get("lastName", ""),
        user_name=document.get("userName", ""),
        points=document.get("points", 0),
        master=document.get("master", False),
        created_at=document.get("createdAt") or _EPOCH,
        updated_at=document.get("updatedAt") or _EPOCH,
    )


class DukunStore:
    """Reads dukun entries from MongoDB."""

    def __init__(self, mongo, db_name: str) -> None:
        self.mongo = mongo
        self.db_name = db_name

    def get_all(self) -> list[Dukun]:
        collection = self.mongo[self.db_name]["dukun"]
        return [dukun_from_document(doc) for doc in collection.find({})]