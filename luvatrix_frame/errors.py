from __future__ import annotations


class FrameConfigurationError(ValueError):
    """Raised when a frame's ranges and scales cannot be bound together."""


class UnknownFactorError(FrameConfigurationError, KeyError):
    pass


class ScaleBindingError(RuntimeError):
    """Raised when a scale is used before both of its ends are assigned."""


class ScaleAlreadyBoundError(AssertionError):
    """A scale template handed to a frame must not carry a source or target yet."""
