"""Data models for Orthodox Daily."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any

MARKUP_RE = re.compile(r"<.*?>")

GOSPEL_BOOKS = frozenset({"matthew", "mark", "luke", "john"})


class ReadingCategory(Enum):
    """Kind of scripture reading, derived from the liturgical book."""

    GOSPEL = "gospel"
    EPISTLE = "epistle"
    OLD_TESTAMENT = "old_testament"
    OTHER = "other"


class OriginalIntent(Enum):
    """How the current reading session was started."""

    LAUNCH = "Launch"
    SCRIPTURES = "Scriptures"


@dataclass(frozen=True)
class Verse:
    """A single verse of a reading."""

    content: str  # May carry inline emphasis markup
    book: str = ""
    chapter: int = 0
    verse: int = 0

    @property
    def text(self) -> str:
        """Verse content with inline markup removed."""
        return MARKUP_RE.sub("", self.content).strip()


@dataclass(frozen=True)
class Reading:
    """One scripture passage appointed for a day."""

    book: str  # Liturgical book: Matthew, Apostol, OT, ...
    display: str  # Human citation, e.g. "Matt 22.15-23.39"
    verses: tuple[Verse, ...] = ()
    source: str = ""
    description: str = ""

    @property
    def category(self) -> ReadingCategory:
        book = self.book.lower()
        if book in GOSPEL_BOOKS:
            return ReadingCategory.GOSPEL
        if book == "apostol":
            return ReadingCategory.EPISTLE
        if book == "ot":
            return ReadingCategory.OLD_TESTAMENT
        return ReadingCategory.OTHER


@dataclass(frozen=True)
class Day:
    """The liturgical day for one date."""

    year: int
    month: int
    day: int
    readings: tuple[Reading, ...] = ()
    titles: tuple[str, ...] = ()
    feasts: tuple[str, ...] = ()
    saints: tuple[str, ...] = ()
    fast_level: int = 0
    fast_level_desc: str = ""
    fast_exception_desc: str = ""

    @property
    def date(self) -> date:
        return date(self.year, self.month, self.day)


def _as_index(value: Any) -> int | None:
    """Coerce a session number (JSON numbers may arrive as floats)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


@dataclass(frozen=True)
class SessionState:
    """Delivery cursor carried between turns in the host's session bag."""

    original_intent: OriginalIntent
    date: date
    reading_index: int = 0
    verse_index: int | None = None  # None = start of the reading
    group_size: int | None = None  # None = whole reading fits one turn

    def __post_init__(self) -> None:
        if self.reading_index < 0:
            raise ValueError("reading_index must not be negative")
        if self.verse_index is not None and self.verse_index < 0:
            raise ValueError("verse_index must not be negative")
        if self.group_size is not None and self.group_size < 1:
            raise ValueError("group_size must be positive")

    @classmethod
    def from_attributes(
        cls, attributes: Mapping[str, Any] | None
    ) -> SessionState | None:
        """Read a session cursor from host attributes.

        Returns None when the bag holds no usable cursor: a missing or
        wrong-typed field means the conversational context is lost.
        """
        if not attributes:
            return None

        try:
            intent = OriginalIntent(attributes.get("original_intent"))
        except ValueError:
            return None

        raw_date = attributes.get("date")
        if not isinstance(raw_date, str):
            return None
        try:
            when = date.fromisoformat(raw_date)
        except ValueError:
            return None

        reading_index = _as_index(attributes.get("next_reading", 0))
        if reading_index is None:
            return None

        optional: dict[str, int | None] = {}
        for key in ("next_verse", "group_size"):
            raw = attributes.get(key)
            if raw is None:
                optional[key] = None
                continue
            value = _as_index(raw)
            if value is None:
                return None
            optional[key] = value

        try:
            return cls(
                original_intent=intent,
                date=when,
                reading_index=reading_index,
                verse_index=optional["next_verse"],
                group_size=optional["group_size"],
            )
        except ValueError:
            return None

    def to_attributes(self) -> dict[str, Any]:
        """Serialize the cursor for the host's session bag."""
        attributes: dict[str, Any] = {
            "original_intent": self.original_intent.value,
            "date": self.date.isoformat(),
            "next_reading": self.reading_index,
        }
        if self.verse_index is not None:
            attributes["next_verse"] = self.verse_index
        if self.group_size is not None:
            attributes["group_size"] = self.group_size
        return attributes
