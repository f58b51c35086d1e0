"""Exceptions raised by the analytics core."""


class AnalyticsError(Exception):
    """Base class for hard analytics failures."""


class SegmentTooShortError(AnalyticsError, ValueError):
    """Raised when a segment holds fewer samples than any metric needs."""


class InvalidSegmentError(AnalyticsError, IndexError):
    """Raised when segment bounds do not select a contiguous slice of the track."""


class ActivityFileError(AnalyticsError):
    """Raised when an activity file cannot be read."""
