"""Pytest fixtures for Orthodox Daily tests."""

from datetime import date
from unittest.mock import MagicMock

import pytest

from orthodox_daily.config import DeliveryBudget
from orthodox_daily.models import Day, Reading, Verse

# Rendered verses are wrapped in <p></p>
WRAPPER = len("<p></p>")


def verses_costing(reading: int, count: int, cost: int) -> tuple[Verse, ...]:
    """Verses with unique text whose rendered paragraph is exactly cost chars."""
    verses = []
    for i in range(count):
        marker = f"R{reading}V{i:02d} "
        verses.append(Verse(content=marker.ljust(cost - WRAPPER, "x"), verse=i + 1))
    return tuple(verses)


@pytest.fixture
def sample_day() -> Day:
    """A small day whose readings all fit in one turn."""
    return Day(
        year=2026,
        month=10,
        day=19,
        titles=("Twentieth Week after Pentecost. Tone two.",),
        feasts=(),
        saints=("Prophet Joel", "Martyr Varus and six monks with him"),
        fast_level=0,
        fast_level_desc="No Fast",
        readings=(
            Reading(
                book="Apostol",
                display="Philippians 1.1-7",
                source="Epistle",
                verses=(
                    Verse(content="Paul and Timothy, servants of Jesus Christ,"),
                    Verse(content="Grace be unto you, and peace,"),
                ),
            ),
            Reading(
                book="Luke",
                display="Luke 6.24-30",
                source="Gospel",
                verses=(
                    Verse(content="But woe unto you that are <i>rich</i>!"),
                    Verse(content="Woe unto you that are full!"),
                ),
            ),
        ),
    )


@pytest.fixture
def three_reading_day() -> Day:
    """Reading 0 and 2 fit whole; reading 1 needs two groups."""
    return Day(
        year=2026,
        month=10,
        day=19,
        titles=("Twentieth Week after Pentecost.",),
        fast_level=1,
        fast_level_desc="Fast Day",
        readings=(
            Reading(
                book="Apostol",
                display="Philippians 1.1-7",
                verses=verses_costing(0, 3, 700),
            ),
            Reading(
                book="Matthew",
                display="Matt 22.15-23.39",
                verses=verses_costing(1, 12, 700),
            ),
            Reading(
                book="OT", display="Isaiah 1.1-2", verses=verses_costing(2, 2, 700)
            ),
        ),
    )


@pytest.fixture
def example_budget() -> DeliveryBudget:
    return DeliveryBudget(
        max_length=8000, preamble=500, closing_prompt=300, continuation_prompt=400
    )


@pytest.fixture
def today() -> date:
    return date(2026, 10, 19)


@pytest.fixture
def lectionary_for():
    """Build a lectionary stub that always returns the given day."""

    def _make(day: Day) -> MagicMock:
        lectionary = MagicMock()
        lectionary.get_day.return_value = day
        return lectionary

    return _make


@pytest.fixture
def make_verses():
    return verses_costing
