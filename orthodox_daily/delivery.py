"""Turn-by-turn delivery of a day's scripture readings.

This module holds the conversation logic shared by every host (the voice
skill webhook and the Telegram bot). A turn is a pure step from the
previous session cursor and the user's signal to a bounded response and
a new cursor; hosts only translate their envelopes to and from it.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from enum import Enum

from .config import DeliveryBudget
from .exceptions import InvalidDateError, LectionaryError
from .models import Day, OriginalIntent, SessionState
from .orthocal import Lectionary
from .sizer import estimate_group_size
from .speech import (
    CONTINUE_PROMPT,
    END_OF_READINGS,
    NEXT_READING_PROMPT,
    day_speech,
    error_speech,
    help_speech,
    invalid_date_speech,
    missing_context_speech,
    no_more_readings_speech,
    no_readings_speech,
    reading_speech,
    readings_card,
    spoken_date,
    to_plain_text,
    too_long_speech,
    verse_range_speech,
    when_speech,
)
from .ssml import SSMLBuilder, escape

logger = logging.getLogger(__name__)

# Refinements of the group size before falling back to one verse per turn.
MAX_REBUILD_ATTEMPTS = 8

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class Signal(Enum):
    """What the user asked for on this turn."""

    LAUNCH = "launch"
    DAY = "day"
    SCRIPTURES = "scriptures"
    CONTINUE = "continue"
    DECLINE = "decline"
    HELP = "help"
    STOP = "stop"
    CANCEL = "cancel"


@dataclass(frozen=True)
class Turn:
    """One incoming user turn."""

    signal: Signal
    date_slot: str | None = None  # ISO YYYY-MM-DD


@dataclass(frozen=True)
class TurnResult:
    """Response for one turn plus the cursor to persist for the next."""

    speech: str  # SSML; empty means nothing to say
    session: SessionState | None  # None clears the session bag
    end_session: bool
    card_title: str | None = None
    card: str | None = None
    keep_session: bool = False  # Host leaves its session bag exactly as received


@dataclass(frozen=True)
class _Composed:
    speech: str
    session: SessionState | None
    end_session: bool
    end: int  # Index just past the last verse delivered


def parse_date(value: str) -> date:
    """Parse an ISO YYYY-MM-DD date slot."""
    value = value.strip()
    if not ISO_DATE_RE.match(value):
        raise InvalidDateError(value)
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise InvalidDateError(value) from e


def _slice_end(start: int, group_size: int | None, verse_count: int) -> int:
    if group_size is None:
        return verse_count
    return min(start + group_size, verse_count)


def _cursor(state: SessionState | None) -> str:
    if state is None:
        return "none"
    return (
        f"{state.original_intent.value}@{state.date} "
        f"reading={state.reading_index} verse={state.verse_index} "
        f"group={state.group_size}"
    )


class DeliveryStateMachine:
    """Decides what to say next and where to resume on the following turn."""

    def __init__(
        self,
        lectionary: Lectionary,
        budget: DeliveryBudget | None = None,
        tz: tzinfo | None = None,
    ):
        self.lectionary = lectionary
        self.budget = budget or DeliveryBudget()
        self.tz = tz

    def today(self) -> date:
        return datetime.now(self.tz).date()

    def handle(
        self, turn: Turn, state: SessionState | None, today: date | None = None
    ) -> TurnResult:
        """Run a single conversational turn."""
        if today is None:
            today = self.today()
        logger.info(
            f"Turn {turn.signal.name} (date slot={turn.date_slot}, "
            f"cursor={_cursor(state)})"
        )

        requested = today
        if turn.date_slot:
            try:
                requested = parse_date(turn.date_slot)
            except InvalidDateError as e:
                logger.info(f"Rejecting turn: {e}")
                return TurnResult(
                    invalid_date_speech(), state, end_session=False, keep_session=True
                )

        try:
            if turn.signal is Signal.LAUNCH:
                return self._launch(today)
            if turn.signal is Signal.DAY:
                return self._day(requested, today)
            if turn.signal is Signal.SCRIPTURES:
                return self._scriptures(requested)
            if turn.signal is Signal.CONTINUE:
                return self._continue(state)
        except LectionaryError as e:
            logger.exception(f"Could not load readings for {turn.signal.name}: {e}")
            return TurnResult(
                error_speech(), state, end_session=False, keep_session=True
            )

        if turn.signal is Signal.HELP:
            speech = help_speech()
            return TurnResult(
                speech,
                None,
                end_session=False,
                card_title="Help",
                card=to_plain_text(speech),
            )
        if turn.signal is Signal.DECLINE:
            return TurnResult("", None, end_session=True)

        # Stop and cancel leave the session bag as it was.
        return TurnResult("", state, end_session=True, keep_session=True)

    def _launch(self, today: date) -> TurnResult:
        day = self.lectionary.get_day(today)

        builder = SSMLBuilder()
        card = day_speech(builder, day, today)
        if not day.readings:
            builder.append_paragraph("There are no scripture readings today.")
            return TurnResult(
                builder.build(),
                None,
                end_session=True,
                card_title="About Today",
                card=card,
            )

        builder.append_paragraph(
            f"There are {len(day.readings)} scripture readings."
            if len(day.readings) > 1
            else "There is one scripture reading."
        )
        builder.append_paragraph("Would you like to hear the readings?")

        state = SessionState(OriginalIntent.LAUNCH, today, reading_index=0)
        return TurnResult(
            builder.build(),
            state,
            end_session=False,
            card_title="About Today",
            card=card,
        )

    def _day(self, when: date, today: date) -> TurnResult:
        day = self.lectionary.get_day(when)
        builder = SSMLBuilder()
        card = day_speech(builder, day, today)
        return TurnResult(
            builder.build(),
            None,
            end_session=True,
            card_title=f"About {when_speech(day, today)}",
            card=card,
        )

    def _scriptures(self, when: date) -> TurnResult:
        day = self.lectionary.get_day(when)
        if not day.readings:
            logger.info(f"No readings for {when}")
            return TurnResult(no_readings_speech(when), None, end_session=True)

        intent = OriginalIntent.SCRIPTURES
        reading = day.readings[0]
        count = len(day.readings)
        intro = (
            f"There are {count} readings for {spoken_date(when)}."
            if count > 1
            else f"There is one reading for {spoken_date(when)}."
        )

        def compose(group_size: int | None) -> _Composed:
            builder = SSMLBuilder()
            builder.append_paragraph(escape(intro))
            builder.append_break("strong", "1500ms")
            end = _slice_end(0, group_size, len(reading.verses))
            reading_speech(builder, reading, end)
            builder.append_break("medium", "750ms")
            return self._advance(builder, day, intent, 0, end, group_size)

        group_size = estimate_group_size(reading.verses, self.budget)
        composed = self._fit(
            compose,
            start=0,
            group_size=group_size,
            degrade=lambda: self._degrade(day, intent, 0, 0, group_size, first=True),
        )
        return TurnResult(
            composed.speech,
            composed.session,
            composed.end_session,
            card_title="Daily Readings",
            card=readings_card(day),
        )

    def _continue(self, state: SessionState | None) -> TurnResult:
        if state is None:
            logger.info("Continue without a session; context lost")
            return TurnResult(missing_context_speech(), None, end_session=True)

        day = self.lectionary.get_day(state.date)
        if state.reading_index >= len(day.readings):
            logger.warning(
                f"Cursor past the last reading ({state.reading_index} >= "
                f"{len(day.readings)})"
            )
            return TurnResult(no_more_readings_speech(), None, end_session=True)

        reading_index = state.reading_index
        reading = day.readings[reading_index]
        verse_count = len(reading.verses)
        start = state.verse_index or 0
        if start and start >= verse_count:
            logger.warning(
                f"Cursor past the end of {reading.display} ({start} >= {verse_count})"
            )
            return TurnResult(missing_context_speech(), None, end_session=True)

        group_size = state.group_size
        if group_size is None:
            group_size = estimate_group_size(reading.verses[start:], self.budget)

        def compose(size: int | None) -> _Composed:
            builder = SSMLBuilder()
            end = _slice_end(start, size, verse_count)
            if start == 0:
                reading_speech(builder, reading, end)
            else:
                verse_range_speech(builder, reading, start, end)
            builder.append_break("medium", "750ms")
            return self._advance(
                builder, day, state.original_intent, reading_index, end, size
            )

        composed = self._fit(
            compose,
            start=start,
            group_size=group_size,
            degrade=lambda: self._degrade(
                day, state.original_intent, reading_index, start, state.group_size
            ),
        )
        return TurnResult(composed.speech, composed.session, composed.end_session)

    def _next_step(
        self,
        day: Day,
        intent: OriginalIntent,
        reading_index: int,
        end: int,
        group_size: int | None,
    ) -> tuple[str, SessionState | None, bool]:
        """Closing prompt, next cursor and end-of-session flag after a delivery."""
        reading = day.readings[reading_index]
        if end < len(reading.verses):
            state = SessionState(
                intent,
                day.date,
                reading_index=reading_index,
                verse_index=end,
                group_size=group_size,
            )
            return CONTINUE_PROMPT, state, False
        if reading_index + 1 < len(day.readings):
            state = SessionState(intent, day.date, reading_index=reading_index + 1)
            return NEXT_READING_PROMPT, state, False
        return END_OF_READINGS, None, True

    def _advance(
        self,
        builder: SSMLBuilder,
        day: Day,
        intent: OriginalIntent,
        reading_index: int,
        end: int,
        group_size: int | None,
    ) -> _Composed:
        prompt, state, end_session = self._next_step(
            day, intent, reading_index, end, group_size
        )
        builder.append_paragraph(prompt)
        return _Composed(builder.build(), state, end_session, end)

    def _degrade(
        self,
        day: Day,
        intent: OriginalIntent,
        reading_index: int,
        start: int,
        group_size: int | None,
        first: bool = False,
    ) -> _Composed:
        """Skip the single verse at start with an apology."""
        reading = day.readings[reading_index]
        end = min(start + 1, len(reading.verses))
        logger.warning(
            f"Verse {start} of {reading.display} does not fit in "
            f"{self.budget.max_length} chars; skipping it"
        )
        prompt, state, end_session = self._next_step(
            day, intent, reading_index, end, group_size
        )
        return _Composed(too_long_speech(prompt, first=first), state, end_session, end)

    def _fit(
        self,
        compose: Callable[[int | None], _Composed],
        start: int,
        group_size: int | None,
        degrade: Callable[[], _Composed],
    ) -> _Composed:
        """Rebuild a turn with smaller groups until the response fits."""
        max_length = self.budget.max_length
        attempts = 0
        while True:
            composed = compose(group_size)
            length = len(composed.speech)
            if length <= max_length:
                return composed

            delivered = composed.end - start
            if delivered <= 1:
                return degrade()

            attempts += 1
            if attempts > MAX_REBUILD_ATTEMPTS:
                group_size = 1
            else:
                group_count = -(-length // max_length) + 1
                group_size = min(-(-delivered // group_count), delivered - 1)
            logger.warning(
                f"Response is {length} chars (limit {max_length}); "
                f"rebuilding with groups of {group_size}"
            )
