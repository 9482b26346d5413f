"""Fatal error taxonomy for the script-adaptation pipeline.

Every error carries a short user-facing ``cause`` string.  Nothing in this
package retries automatically; retry policy belongs to the caller.
"""
from __future__ import annotations


class AdaptationError(Exception):
    """Base class for request-fatal pipeline errors."""

    def __init__(self, cause: str) -> None:
        super().__init__(cause)
        self.cause = cause


class UpstreamError(AdaptationError):
    """The model invocation failed or returned no usable text."""


class UnparseableResponseError(AdaptationError):
    """A structured (JSON) model response could not be repaired or salvaged."""


class NoScenesParsedError(AdaptationError):
    """Neither the block parser nor the line parser found a single scene."""
