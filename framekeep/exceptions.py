"""
Exception hierarchy for framekeep.

Suppressing a frame is not an error and never raises; the filter reports it by
returning ``None``. The classes below cover the failures that remain.
"""


class FramekeepError(Exception):
    """Base class for all framekeep errors."""


class ConfigurationError(FramekeepError):
    """Raised when a filter configuration is missing or invalid.

    A component that raises this during construction is never created.
    """


class UnsupportedOperationError(FramekeepError):
    """Raised for capabilities the filtered camera does not provide."""


class SourceExhaustedError(FramekeepError):
    """Raised by finite frame sources once every frame has been read."""
