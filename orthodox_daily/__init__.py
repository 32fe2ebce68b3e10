"""Orthodox Daily - the day's scripture readings, read aloud in parts."""

__version__ = "1.0.0"
