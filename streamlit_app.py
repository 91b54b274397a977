"""
Streamlit entry point for the Perspective Research tool.

Collects a topic and run options, drives a `ResearchOrchestrator` while
streaming phase progress and the research log into the page, then renders
the report and offers it as a text download.
"""

from __future__ import annotations

import logging
from typing import List

import streamlit as st
from dotenv import load_dotenv
from pydantic import ValidationError

from research_engine import ResearchFault, ResearchObserver, ResearchOrchestrator
from research_state_manager import MAX_ITERATIONS, FinalReport, ResearchDepth, ResearchRequest

# Ensure environment variables from .env are loaded before creating runs.
load_dotenv()

LOGGER = logging.getLogger(__name__)


class StreamlitObserver(ResearchObserver):
    """Mirrors run notifications into Streamlit placeholders."""

    def __init__(self) -> None:
        self._phase = st.empty()
        self._progress = st.progress(2)
        self._status = st.empty()
        self._log_box = st.empty()
        self._lines: List[str] = []

    def on_log(self, entry: str) -> None:
        self._lines.append(entry)
        self._log_box.code("\n".join(self._lines[-40:]), language="text")

    def on_progress_text(self, text: str) -> None:
        self._status.caption(text)

    def on_phase_label(self, label: str) -> None:
        self._phase.subheader(label)

    def on_phase_progress(self, index: int, total: int) -> None:
        ratio = max(0.0, min(1.0, index / total))
        self._progress.progress(round(ratio * 100))


def _init_session_state() -> None:
    """Initialize keys stored in st.session_state."""
    if "report" not in st.session_state:
        st.session_state.report = None


def _render_report(report: FinalReport) -> None:
    st.header("Topic Analysis")
    st.markdown(report.topic_analysis.analysis)

    st.header("Research Perspectives")
    for idx, perspective in enumerate(report.perspectives, start=1):
        st.markdown(f"**{idx}.** {perspective}")

    st.header("Deep Research Findings")
    for perspective, result in report.deep_research.items():
        with st.expander(perspective, expanded=False):
            if not result.ok:
                st.error(result.error)
                continue
            st.markdown("**Initial research**")
            st.markdown(result.initial_research)
            st.markdown("**Critical analysis**")
            st.markdown(result.critical_analysis)
            st.markdown("**Identified gaps**")
            st.markdown(result.identified_gaps)
            st.markdown("**Synthesis**")
            st.markdown(result.synthesis)

    st.header("Synthesis & Conclusions")
    st.markdown(report.synthesis)

    with st.expander("Research log", expanded=False):
        st.code("\n".join(report.research_log), language="text")

    st.download_button(
        "Export as text",
        data=report.to_text(),
        file_name="research_report.txt",
        mime="text/plain",
    )


def main() -> None:
    st.set_page_config(page_title="Perspective Research", layout="wide")
    st.title("Perspective Research")
    st.caption("Analyse a topic from several research perspectives and synthesise a report.")

    _init_session_state()

    with st.form("research"):
        topic = st.text_area("Research topic")
        depth = st.selectbox("Depth", [depth.value for depth in ResearchDepth], index=2)
        iterations = st.slider("Perspective coverage", min_value=1, max_value=MAX_ITERATIONS, value=5)
        constraints = st.text_input("Constraints / addons (optional)")
        model_id = st.text_input("Model id (optional)")
        submitted = st.form_submit_button("Run research")

    if submitted:
        try:
            request = ResearchRequest(topic=topic, depth=depth, iterations=iterations)
        except ValidationError as exc:
            st.error(exc.errors()[0]["msg"])
            return

        try:
            orchestrator = ResearchOrchestrator(
                model_id=model_id or None,
                constraints=constraints,
                observer=StreamlitObserver(),
            )
        except EnvironmentError as exc:  # pragma: no cover - surfaced to UI
            LOGGER.exception("Streamlit failed to initialize ResearchOrchestrator: %s", exc)
            st.error(f"Failed to initialize the research run. Verify API keys in your environment.\n\nDetails: {exc}")
            return

        try:
            st.session_state.report = orchestrator.conduct_research(
                request.topic, request.depth, request.iterations
            )
            st.success("Research completed successfully.")
        except ResearchFault as exc:  # pragma: no cover - surfaced to UI
            LOGGER.exception("Research run failed: %s", exc)
            st.error(f"Research failed: {exc}")
        finally:
            orchestrator.cancel()
            orchestrator.close()

    if st.session_state.report is not None:
        _render_report(st.session_state.report)


if __name__ == "__main__":
    main()
