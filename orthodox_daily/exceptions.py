"""Exceptions raised by Orthodox Daily."""


class OrthodoxDailyError(Exception):
    """Base class for all application errors."""


class LectionaryError(OrthodoxDailyError):
    """The day's readings could not be loaded."""


class InvalidDateError(OrthodoxDailyError, ValueError):
    """A requested date could not be parsed."""

    def __init__(self, value: str):
        super().__init__(f"Invalid date: {value!r}")
        self.value = value
