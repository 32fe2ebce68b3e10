"""Spoken phrases and SSML rendering for days and readings."""

import html
import logging
import re
from collections.abc import Callable
from datetime import date

from .config import get_templates_dir
from .models import MARKUP_RE, Day, Reading, ReadingCategory
from .ssml import SSMLBuilder, escape

logger = logging.getLogger(__name__)

REFERENCE_RE = re.compile(r"(\d*)\s*([\w\s]+)\s+(\d+)")

EPISTLES: dict[str, str] = {
    "acts": "The Acts of the Apostles",
    "romans": "Saint Paul's letter to the Romans",
    "corinthians": "Saint Paul's {ordinal} letter to the Corinthians",
    "galatians": "Saint Paul's letter to the Galatians",
    "ephesians": "Saint Paul's letter to the Ephesians",
    "philippians": "Saint Paul's letter to the Philippians",
    "colossians": "Saint Paul's letter to the Colossians",
    "thessalonians": "Saint Paul's {ordinal} letter to the Thessalonians",
    "timothy": "Saint Paul's {ordinal} letter to Timothy",
    "titus": "Saint Paul's letter to Titus",
    "philemon": "Saint Paul's letter to Philemon",
    "hebrews": "Saint Paul's letter to the Hebrews",
    "james": "The Catholic letter of Saint James",
    "peter": "The {ordinal} Catholic letter of Saint Peter",
    "john": "The {ordinal} Catholic letter of Saint John",
    "jude": "The Catholic letter of Saint Jude",
}

NEXT_READING_PROMPT = "Would you like to hear the next reading?"
CONTINUE_PROMPT = "This is a long reading. Would you like me to continue?"
END_OF_READINGS = "That is the end of the readings."
MISSING_READING = "Orthodox Daily could not find that reading."

_STATIC_MESSAGES: dict[str, str] = {}


def _get_static_message(key: str, generator: Callable[[], str]) -> str:
    """Get a static message from cache or generate it."""
    if key not in _STATIC_MESSAGES:
        _STATIC_MESSAGES[key] = generator()
    return _STATIC_MESSAGES[key]


def ordinal(number: str) -> str:
    return f'<say-as interpret-as="ordinal">{number}</say-as>'


def human_join(words: list[str] | tuple[str, ...]) -> str:
    """Join words as a spoken list: "a, b and c"."""
    if not words:
        return ""
    if len(words) == 1:
        return words[0]
    return ", ".join(words[:-1]) + " and " + words[-1]


def spoken_date(when: date) -> str:
    """Format a date the way it is read out, e.g. "Monday, January 2"."""
    return f"{when:%A}, {when:%B} {when.day}"


def when_speech(day: Day, today: date) -> str:
    """Describe a day relative to today."""
    when = day.date
    delta = (when - today).days
    if delta == 0:
        return f"Today, {when:%B} {when.day}"
    if delta == 1:
        return f"Tomorrow, {when:%B} {when.day}"
    return spoken_date(when)


def fasting_speech(day: Day) -> str:
    if day.fast_level == 0:
        return "On this day there is no fast."
    if day.fast_level == 1:
        # Normal weekly fast
        if day.fast_exception_desc:
            return f"On this day there is a fast. {day.fast_exception_desc}."
        return "On this day there is a fast."
    # One of the four great fasts
    if day.fast_exception_desc:
        return (
            f"This day is during the {day.fast_level_desc}. "
            f"{day.fast_exception_desc}."
        )
    return f"This day is during the {day.fast_level_desc}."


def day_speech(builder: SSMLBuilder, day: Day, today: date) -> str:
    """Append the day summary to builder and return the matching card text."""
    when = when_speech(day, today)

    feasts = ""
    if len(day.feasts) > 1:
        feasts = f"The feasts celebrated are: {human_join(day.feasts)}."
    elif len(day.feasts) == 1:
        feasts = f"The feast of {day.feasts[0]} is celebrated."

    saints = ""
    if len(day.saints) > 1:
        saints = f"The commemorations are for {human_join(day.saints)}."
    elif len(day.saints) == 1:
        saints = f"The commemoration is for {day.saints[0]}."

    card = ""
    if day.titles:
        card = f"{when}, is the {day.titles[0]}.\n\n"
    if day.fast_exception_desc:
        card += f"{day.fast_level_desc} – {day.fast_exception_desc}\n\n"
    else:
        card += f"{day.fast_level_desc}\n\n"
    if feasts:
        card += feasts + "\n\n"
    if saints:
        card += saints + "\n\n"
    for reading in day.readings:
        card += reading.display + "\n"

    if day.titles:
        builder.append_paragraph(escape(f"{when}, is the {day.titles[0]}."))
    else:
        builder.append_paragraph(escape(f"{when}."))
    builder.append_paragraph(escape(fasting_speech(day)))
    builder.append_paragraph(escape(feasts))
    builder.append_paragraph(
        escape(saints).replace("Ven.", '<sub alias="The Venerable">Ven.</sub>')
    )

    return card


def readings_card(day: Day) -> str:
    """Card text listing a day's readings."""
    card = f"Readings for {spoken_date(day.date)}:\n\n"
    for reading in day.readings:
        card += reading.display + "\n"
    return card


def reference_speech(reading: Reading) -> str:
    """Turn a reading's citation into a phrase that reads well aloud."""
    match = REFERENCE_RE.search(reading.display)
    if not match:
        # Irregular reference; let the voice service do its best
        return escape(reading.display.replace(".", ":"))

    # The book here is the book of the Bible, not the liturgical book
    number, book, chapter = match.group(1), match.group(2).strip(), match.group(3)

    category = reading.category
    if category is ReadingCategory.GOSPEL:
        return f"The Holy Gospel according to Saint {book}, chapter {chapter}"
    if category is ReadingCategory.EPISTLE:
        template = EPISTLES.get(book.lower())
        if template is None:
            return f"{escape(book)}, chapter {chapter}"
        return f"{template.format(ordinal=ordinal(number))}, chapter {chapter}"
    if category is ReadingCategory.OLD_TESTAMENT:
        if number:
            return f"{ordinal(number)} {escape(book)}, chapter {chapter}"
        return f"{escape(book)}, chapter {chapter}"
    return escape(reading.display.replace(".", ":"))


def reading_speech(
    builder: SSMLBuilder, reading: Reading, end: int | None = None
) -> None:
    """Announce a reading and append its verses up to (not including) end."""
    builder.append_paragraph(f"The reading is from {reference_speech(reading)}.")
    builder.append_break("medium", "750ms")

    if not reading.verses:
        builder.append_paragraph(MISSING_READING)
        return

    verse_range_speech(builder, reading, 0, end)


def verse_range_speech(
    builder: SSMLBuilder, reading: Reading, start: int, end: int | None = None
) -> None:
    """Append verses [start, end) of a reading, without an announcement."""
    for verse in reading.verses[start:end]:
        builder.append_paragraph(escape(verse.text))


def too_long_speech(prompt: str, first: bool = False) -> str:
    """Apology used when a single verse cannot fit in one response."""
    subject = "the first reading" if first else "that passage"
    return (
        '<speak><say-as interpret-as="interjection">Whew</say-as>, '
        f"{subject} is too long for me. {prompt}</speak>"
    )


def plain_speech(text: str) -> str:
    return SSMLBuilder().append_paragraph(escape(text)).build()


def help_speech() -> str:
    """Help content loaded from the speech templates."""

    def _generate() -> str:
        path = get_templates_dir() / "help.ssml"
        return path.read_text(encoding="utf-8").strip()

    return _get_static_message("help", _generate)


def missing_context_speech() -> str:
    return _get_static_message(
        "missing_context",
        lambda: plain_speech("I'm not sure what you mean in this context."),
    )


def invalid_date_speech() -> str:
    return _get_static_message(
        "invalid_date",
        lambda: plain_speech("I didn't understand the date you requested."),
    )


def no_more_readings_speech() -> str:
    return _get_static_message(
        "no_more_readings", lambda: plain_speech("There are no more readings.")
    )


def error_speech() -> str:
    return _get_static_message(
        "error",
        lambda: plain_speech(
            "Sorry, I couldn't load the readings right now. Please try again later."
        ),
    )


def no_readings_speech(when: date) -> str:
    return plain_speech(f"There are no scripture readings for {spoken_date(when)}.")


def to_plain_text(speech: str) -> str:
    """Flatten SSML into chat text, one paragraph per block."""
    text = speech.replace("</p>", "\n\n")
    text = MARKUP_RE.sub("", text)
    text = html.unescape(text)
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n\s*\n+", "\n\n", text)
    return text.strip()
