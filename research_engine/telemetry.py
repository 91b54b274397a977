from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Deque, List, Optional

from research_state_manager import LogEntry

from .research_prompts import truncate_for_log

logger = logging.getLogger(__name__)

DEFAULT_LOG_CAPACITY = 500
DEFAULT_PROGRESS_CAP = 140

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class ResearchObserver:
    """Receives run notifications.  Every hook defaults to a no-op."""

    def on_log(self, entry: str) -> None:
        pass

    def on_progress_text(self, text: str) -> None:
        pass

    def on_phase_label(self, label: str) -> None:
        pass

    def on_phase_progress(self, index: int, total: int) -> None:
        pass


class CallbackObserver(ResearchObserver):
    """Adapts optional plain callables to the observer interface."""

    def __init__(
        self,
        *,
        on_log: Optional[Callable[[str], None]] = None,
        on_progress_text: Optional[Callable[[str], None]] = None,
        on_phase_label: Optional[Callable[[str], None]] = None,
        on_phase_progress: Optional[Callable[[int, int], None]] = None,
    ) -> None:
        self._on_log = on_log
        self._on_progress_text = on_progress_text
        self._on_phase_label = on_phase_label
        self._on_phase_progress = on_phase_progress

    def on_log(self, entry: str) -> None:
        if self._on_log:
            self._on_log(entry)

    def on_progress_text(self, text: str) -> None:
        if self._on_progress_text:
            self._on_progress_text(text)

    def on_phase_label(self, label: str) -> None:
        if self._on_phase_label:
            self._on_phase_label(label)

    def on_phase_progress(self, index: int, total: int) -> None:
        if self._on_phase_progress:
            self._on_phase_progress(index, total)


class TelemetrySink:
    """Bounded, ordered research log mirrored to an observer and `logging`.

    Entries are never edited; once the capacity is reached the oldest entry
    is dropped for each new one.
    """

    def __init__(
        self,
        *,
        capacity: int = DEFAULT_LOG_CAPACITY,
        progress_cap: int = DEFAULT_PROGRESS_CAP,
        observer: Optional[ResearchObserver] = None,
    ) -> None:
        if capacity < 1:
            raise ValueError("Log capacity must be at least 1.")
        self._entries: Deque[LogEntry] = deque(maxlen=capacity)
        self._progress_cap = progress_cap
        self._observer = observer or ResearchObserver()

    def append(self, message: str, level: str = "info") -> LogEntry:
        entry = LogEntry.create(message, level)
        self._entries.append(entry)
        rendered = entry.render()
        logger.log(_LEVELS.get(entry.level, logging.INFO), rendered)
        self._observer.on_log(rendered)
        self._observer.on_progress_text(truncate_for_log(message, self._progress_cap))
        return entry

    @property
    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    def lines(self) -> List[str]:
        return [entry.render() for entry in self._entries]

    def __len__(self) -> int:
        return len(self._entries)
