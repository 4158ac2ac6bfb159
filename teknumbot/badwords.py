"""Storage of words the bot treats as unfit."""

from __future__ import annotations

import os


class BadWords:
    """Adds bad words to MongoDB and checks who may do so."""

    def __init__(self, mongo, db_name: str) -> None:
        self.mongo = mongo
        self.db_name = db_name

    def add(self, word: str) -> None:
        self.mongo[self.db_name]["badstuff"].insert_one({"value": word})

    def authenticate(self, user_id: str) -> bool:
        """Whether user_id is listed in ADMIN_ID."""
        return user_id in os.environ.get("ADMIN_ID", "").split(",")