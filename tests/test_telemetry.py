import logging
import re

import pytest

from research_engine.telemetry import CallbackObserver, ResearchObserver, TelemetrySink


class RecordingObserver(ResearchObserver):
    def __init__(self) -> None:
        self.events = []

    def on_log(self, entry: str) -> None:
        self.events.append(("log", entry))

    def on_progress_text(self, text: str) -> None:
        self.events.append(("progress", text))


def test_append_renders_time_level_message() -> None:
    sink = TelemetrySink()
    entry = sink.append("Phase 1: Analyzing research topic...")
    assert entry.level == "info"
    assert re.fullmatch(r"\[\d{2}:\d{2}:\d{2}\] \[INFO\] Phase 1: Analyzing research topic\.\.\.", entry.render())
    assert sink.lines() == [entry.render()]


def test_capacity_evicts_oldest_first() -> None:
    sink = TelemetrySink()
    for idx in range(501):
        sink.append(f"event {idx}")
    assert len(sink) == 500
    messages = [entry.message for entry in sink.entries]
    assert messages[0] == "event 1"
    assert messages[-1] == "event 500"


def test_observer_gets_entry_then_truncated_progress() -> None:
    observer = RecordingObserver()
    sink = TelemetrySink(observer=observer)
    long_message = "m" * 200
    entry = sink.append(long_message, "error")
    assert observer.events[0] == ("log", entry.render())
    assert observer.events[1] == ("progress", "m" * 137 + "...")
    assert "[ERROR]" in entry.render()


def test_entries_are_mirrored_to_logging(caplog) -> None:
    sink = TelemetrySink()
    with caplog.at_level(logging.INFO, logger="research_engine.telemetry"):
        sink.append("Topic analysis completed.")
        sink.append("Global synthesis: API error", "error")
    levels = [record.levelno for record in caplog.records]
    assert levels == [logging.INFO, logging.ERROR]


def test_callback_observer_tolerates_missing_callbacks() -> None:
    seen = []
    observer = CallbackObserver(on_phase_progress=lambda index, total: seen.append((index, total)))
    observer.on_log("ignored")
    observer.on_phase_label("ignored")
    observer.on_phase_progress(2, 4)
    assert seen == [(2, 4)]


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        TelemetrySink(capacity=0)
