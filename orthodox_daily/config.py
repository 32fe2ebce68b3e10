"""Configuration management for Orthodox Daily."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

CALENDARS = ("gregorian", "julian")

MAX_SPEECH_LENGTH = 8000
TELEGRAM_MAX_LENGTH = 4000

# Boilerplate costs are measured from representative renderings.
_EXAMPLE_PREAMBLE = (
    "<p>There are 29 readings for Tuesday, January 3.</p>"
    '<break strength="strong" time="1500ms"/>'
    "<p>The reading is from Saint Paul's "
    '<say-as interpret-as="ordinal">2</say-as> letter to the Thessalonians, '
    "chapter 3.</p>"
    '<break strength="medium" time="750ms"/>'
)
_EXAMPLE_CLOSING = (
    '<break strength="medium" time="750ms"/>'
    "<p>Would you like to hear the next reading?</p>"
)
_EXAMPLE_CONTINUATION = (
    '<break strength="medium" time="750ms"/>'
    "<p>This is a long reading. Would you like me to continue?</p>"
)


@dataclass(frozen=True)
class DeliveryBudget:
    """Size limits for a single spoken turn."""

    max_length: int = MAX_SPEECH_LENGTH
    preamble: int = len(_EXAMPLE_PREAMBLE)
    closing_prompt: int = len(_EXAMPLE_CLOSING)
    continuation_prompt: int = len(_EXAMPLE_CONTINUATION)
    verse_wrapper: int = len("<p></p>")

    def __post_init__(self) -> None:
        if self.max_length <= 0:
            raise ValueError("max_length must be positive")


@dataclass(frozen=True)
class Config:
    """Immutable application configuration."""

    log_level: str = "INFO"
    orthocal_base_url: str = "https://orthocal.info/api"
    calendar: str = "gregorian"
    time_zone: str = "America/Los_Angeles"
    request_timeout: int = 10
    max_speech_length: int = MAX_SPEECH_LENGTH
    alexa_app_id: str | None = None
    telegram_bot_token: str | None = None
    telegram_max_length: int = TELEGRAM_MAX_LENGTH

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        calendar = os.getenv("CALENDAR", "gregorian").lower()
        if calendar not in CALENDARS:
            raise ValueError(
                f"CALENDAR must be one of {', '.join(CALENDARS)}, got {calendar!r}"
            )

        try:
            max_speech_length = int(os.getenv("MAX_SPEECH_LENGTH", MAX_SPEECH_LENGTH))
            telegram_max_length = int(
                os.getenv("TELEGRAM_MAX_LENGTH", TELEGRAM_MAX_LENGTH)
            )
            request_timeout = int(os.getenv("REQUEST_TIMEOUT", "10"))
        except ValueError as e:
            raise ValueError(f"Invalid numeric setting: {e}") from e

        config = cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            orthocal_base_url=os.getenv(
                "ORTHOCAL_BASE_URL", "https://orthocal.info/api"
            ),
            calendar=calendar,
            time_zone=os.getenv("TIME_ZONE", "America/Los_Angeles"),
            request_timeout=request_timeout,
            max_speech_length=max_speech_length,
            alexa_app_id=os.getenv("ALEXA_APP_ID") or None,
            telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN") or None,
            telegram_max_length=telegram_max_length,
        )

        if not config.alexa_app_id:
            logger.warning(
                "ALEXA_APP_ID is not set -- skill requests will not be checked "
                "against an application id"
            )

        return config

    @property
    def tz(self) -> ZoneInfo:
        """Time zone used to decide what "today" is."""
        return ZoneInfo(self.time_zone)

    def budget(self) -> DeliveryBudget:
        """Delivery budget for spoken (SSML) turns."""
        return DeliveryBudget(max_length=self.max_speech_length)

    def telegram_budget(self) -> DeliveryBudget:
        """Delivery budget for Telegram chat turns."""
        return DeliveryBudget(max_length=self.telegram_max_length)

    def setup_logging(self) -> None:
        """Configure application logging."""
        logging.basicConfig(
            level=getattr(logging, self.log_level.upper()),
            format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def get_project_root() -> Path:
    """Get the package root directory."""
    return Path(__file__).parent


def get_templates_dir() -> Path:
    """Get the directory holding the speech templates."""
    return get_project_root() / "templates"
