"""Message buffers: a ring of recent coloured messages, optionally word-wrapped."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

MAX_MESSAGES = 256
ERROR_COLOR = 5


@dataclass
class Message:
    """One line of text and the index of the font colour it is shown in."""

    text: str
    color: int = 0


class MessageBuffer:
    """Keeps the last MAX_MESSAGES messages; older slots are overwritten."""

    def __init__(self) -> None:
        self._slots: List[Optional[Message]] = [None] * MAX_MESSAGES
        self.count = 0
        self.updated = 0

    def __len__(self) -> int:
        return self.count

    def add(self, text: str, color: int = 0) -> None:
        self._slots[self.count % MAX_MESSAGES] = Message(text, color)
        self.count += 1
        self.updated += 1

    def error(self, text: str) -> None:
        """Add a message in the error colour."""
        self.add(text, ERROR_COLOR)

    def lines(self, first: int = 0, total: int = MAX_MESSAGES) -> List[Message]:
        """Return up to ``total`` messages starting at message number ``first``."""
        first = max(first, 0)
        end = min(self.count, first + max(total, 0))
        return [self._slots[i % MAX_MESSAGES] for i in range(first, end)]


class WrappingMessageBuffer(MessageBuffer):
    """A message buffer that splits text into lines no wider than ``width``.

    ``fonts`` is indexed by colour; each entry provides ``width_of(text)``.
    """

    def __init__(self, width: int, fonts: Sequence) -> None:
        super().__init__()
        self.width = width
        self.fonts = fonts

    def add(self, text: str, color: int = 0) -> None:
        font = self.fonts[color]
        while True:
            i = 0
            used = 0
            while used < self.width and i < len(text):
                used += font.width_of(text[i])
                i += 1
            if i < len(text):
                i -= 1
                while i > 0 and not text[i].isspace():
                    i -= 1
            if i <= 0:
                return
            super().add(text[:i], color)
            if i >= len(text):
                return
            text = text[i:]