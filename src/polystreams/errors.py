"""Exception hierarchy.

Invocation failures are never raised past a poll session; they become
failure-kind QueryResults. Only construction-time problems surface as
exceptions.
"""

from __future__ import annotations


class PolyStreamsError(Exception):
    """Base class for all polystreams errors."""

    pass


class ConfigurationError(PolyStreamsError, ValueError):
    """Raised when scheduling parameters are rejected before polling starts."""

    pass


class PipelineClosedError(PolyStreamsError, RuntimeError):
    """Raised when starting or subscribing to a pipeline that was closed."""

    pass
