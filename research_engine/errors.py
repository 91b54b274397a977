"""
Fault taxonomy shared by the research engine.

Every fault raised by the engine derives from `ResearchFault`, so hosts can
catch one type and surface its message.  Messages raised by the completion
client are already prefixed with the label of the originating call.
"""

from __future__ import annotations

from typing import Any, Optional


class ResearchFault(RuntimeError):
    """Base class for every failure raised while conducting research."""


class CancellationFault(ResearchFault):
    """Raised when a run is no longer active at a check point."""

    def __init__(self, message: str = "Research run was cancelled or is no longer active.") -> None:
        super().__init__(message)


class UsageFault(ResearchFault):
    """Internal precondition violation, e.g. an empty message list."""


class TimeoutFault(ResearchFault):
    """The completion request exceeded the configured deadline."""


class NetworkFault(ResearchFault):
    """Transport-level failure other than a timeout."""


class HttpFault(ResearchFault):
    """The completion service answered with a non-2xx status."""

    def __init__(self, message: str, *, status_code: int, detail: Optional[Any] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class ParseFault(ResearchFault):
    """The response body could not be decoded as JSON."""


class MalformedResponseFault(ResearchFault):
    """The response decoded but lacks `choices[0].message.content`."""


class EmptyGenerationFault(ResearchFault):
    """No perspectives could be parsed from the model response."""
