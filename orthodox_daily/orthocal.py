"""Orthocal API client for fetching a day's readings and commemorations."""

import logging
from datetime import date
from typing import Any, Protocol

import requests

from .exceptions import LectionaryError
from .models import Day, Reading, Verse

logger = logging.getLogger(__name__)

# In-memory cache of fetched days (avoids repeated API calls across turns)
_day_cache: dict[tuple[str, str], Day] = {}


class Lectionary(Protocol):
    """Anything that can produce the liturgical day for a date."""

    def get_day(self, for_date: date) -> Day: ...


class OrthocalClient:
    """Client for the orthocal.info API."""

    BASE_URL = "https://orthocal.info/api"

    def __init__(
        self,
        calendar: str = "gregorian",
        base_url: str | None = None,
        timeout: int = 10,
    ):
        self.calendar = calendar
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {
                "User-Agent": "OrthodoxDaily/1.0",
                "Accept": "application/json",
                "Connection": "keep-alive",
            }
        )
        adapter = requests.adapters.HTTPAdapter(
            pool_connections=10,
            pool_maxsize=10,
            max_retries=1,
        )
        self.session.mount("https://", adapter)

    def day_url(self, for_date: date) -> str:
        return (
            f"{self.base_url}/{self.calendar}/"
            f"{for_date.year}/{for_date.month}/{for_date.day}/"
        )

    def get_day(self, for_date: date) -> Day:
        """Fetch the liturgical day, including the text of its readings."""
        cache_key = (self.calendar, for_date.isoformat())
        if cache_key in _day_cache:
            logger.debug(f"Memory cache hit for {self.calendar} {for_date}")
            return _day_cache[cache_key]

        url = self.day_url(for_date)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            data: dict[str, Any] = response.json()
        except requests.RequestException as e:
            logger.error(f"Failed to fetch {url}: {e}")
            raise LectionaryError(f"Could not load {for_date}: {e}") from e
        except ValueError as e:
            logger.error(f"Invalid JSON from {url}: {e}")
            raise LectionaryError(f"Invalid response for {for_date}") from e

        try:
            day = parse_day(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Unexpected payload from {url}: {e}")
            raise LectionaryError(f"Unexpected response for {for_date}") from e

        logger.info(
            f"Loaded {self.calendar} day {for_date}: {len(day.readings)} readings"
        )
        _day_cache[cache_key] = day
        return day


def parse_verse(data: dict[str, Any]) -> Verse:
    return Verse(
        content=str(data.get("content") or ""),
        book=str(data.get("book") or ""),
        chapter=int(data.get("chapter") or 0),
        verse=int(data.get("verse") or 0),
    )


def parse_reading(data: dict[str, Any]) -> Reading:
    return Reading(
        book=str(data.get("book") or ""),
        display=str(data["display"]),
        verses=tuple(parse_verse(v) for v in data.get("passage") or []),
        source=str(data.get("source") or ""),
        description=str(data.get("description") or ""),
    )


def parse_day(data: dict[str, Any]) -> Day:
    """Build a Day from an orthocal API payload."""
    return Day(
        year=int(data["year"]),
        month=int(data["month"]),
        day=int(data["day"]),
        readings=tuple(parse_reading(r) for r in data.get("readings") or []),
        titles=tuple(data.get("titles") or ()),
        feasts=tuple(data.get("feasts") or ()),
        saints=tuple(data.get("saints") or ()),
        fast_level=int(data.get("fast_level") or 0),
        fast_level_desc=str(data.get("fast_level_desc") or ""),
        fast_exception_desc=str(data.get("fast_exception_desc") or ""),
    )
