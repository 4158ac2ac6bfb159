"""Small helpers shared by the bot's features."""

from __future__ import annotations

import random
from collections.abc import Iterable

_HEIGHT = 5

_FONT: dict[str, list[str]] = {
    "A": [" /\\ ", "/  \\", "|--|", "|  |", "|  |"],
    "B": ["|--\\", "|  |", "|--<", "|  |", "|--/"],
    "C": [" /--", "|   ", "|   ", "|   ", " \\--"],
    "D": ["|--\\", "|  |", "|  |", "|  |", "|--/"],
    "E": ["|---", "|   ", "|-- ", "|   ", "|---"],
    "F": ["|---", "|   ", "|-- ", "|   ", "|   "],
    "G": [" /--", "|   ", "| -|", "|  |", " \\-/"],
    "H": ["|  |", "|  |", "|--|", "|  |", "|  |"],
    "I": ["---", " | ", " | ", " | ", "---"],
    "J": ["  |", "  |", "  |", "| |", " \\/"],
    "K": ["|  /", "| / ", "|<  ", "| \\ ", "|  \\"],
    "L": ["|   ", "|   ", "|   ", "|   ", "|---"],
    "M": ["|\\  /|", "| \\/ |", "|    |", "|    |", "|    |"],
    "N": ["|\\  |", "| \\ |", "|  \\|", "|   |", "|   |"],
    "O": [" /--\\ ", "|    |", "|    |", "|    |", " \\--/ "],
    "P": ["|--\\", "|  |", "|--/", "|   ", "|   "],
    "Q": [" /--\\ ", "|    |", "|    |", "|  \\ |", " \\--\\ "],
    "R": ["|--\\", "|  |", "|--/", "| \\ ", "|  \\"],
    "S": [" /--", "|   ", " \\-\\", "    |", "---/"],
    "T": ["-----", "  |  ", "  |  ", "  |  ", "  |  "],
    "U": ["|   |", "|   |", "|   |", "|   |", " \\-/ "],
    "V": ["\\   /", "\\   /", " \\ / ", " \\ / ", "  V  "],
    "W": ["|    |", "|    |", "|    |", "| /\\ |", "|/  \\|"],
    "X": ["\\   /", " \\ / ", "  X  ", " / \\ ", "/   \\"],
    "Y": ["\\   /", " \\ / ", "  |  ", "  |  ", "  |  "],
    "Z": ["----/", "   / ", "  /  ", " /   ", "/----"],
    "0": [" /-\\ ", "|  /|", "| / |", "|/  |", " \\-/ "],
    "1": [" /| ", "/ | ", "  | ", "  | ", "----"],
    "2": [" --\\ ", "    |", " --/ ", "|    ", " ----"],
    "3": ["---\\ ", "    |", " --< ", "    |", "---/ "],
    "4": ["|   |", "|   |", " ---|", "    |", "    |"],
    "5": ["|----", "|    ", " ---\\", "    |", "----/"],
    "6": [" /---", "|    ", "|---\\", "|   |", " \\--/"],
    "7": ["-----", "    /", "   / ", "  /  ", " /   "],
    "8": [" /-\\ ", "|   |", " >-< ", "|   |", " \\-/ "],
    "9": [" /-\\ ", "|   |", " \\--|", "    |", " ---/"],
    " ": ["  "] * _HEIGHT,
}


def is_in(items: Iterable[str], value: str) -> bool:
    """Whether value is one of items."""
    return value in items


def _render(text: str) -> str:
    glyphs = [_FONT[ch] for ch in text.upper() if ch in _FONT]
    if not any(ch.strip() for ch in text.upper() if ch in _FONT):
        return ""
    rows = []
    for row in range(_HEIGHT):
        parts = [glyph[row].ljust(max(len(line) for line in glyph)) for glyph in glyphs]
        rows.append(" ".join(parts).rstrip())
    return "\n".join(rows)


def generate_ascii(text: str) -> str:
    """Render text as ASCII art, escaped for HTML; empty when nothing is supported."""
    art = _render(text)
    return art.replace("<", "&lt;").replace(">", "&gt;")


def generate_random_number() -> str:
    """Three random digits as a string."""
    return "".join(str(random.randrange(9)) for _ in range(3))


def should_add_space(user) -> str:
    """A space when the user has a last name, otherwise nothing."""
    return " " if user.last_name else ""


def is_admin(admins, user) -> bool:
    """Whether the user is among the chat members given as admins."""
    return any(admin.user.id == user.id for admin in admins)