"""
Perspective Research Orchestrator (OpenRouter-compatible chat completions)

- Phase 1 analyses the topic.
- Phase 2 asks the model for research perspectives and parses them.
- Phase 3 runs the four-step deep research per perspective; a failing
  perspective is recorded and the run moves on.
- Phase 4 integrates every perspective into one report.

Cancellation is cooperative: `cancel()` flips the run's active flag, which is
checked at every phase entry, every completion call and every log append.  A
request already waiting on the network is not interrupted; it ends on its
own or through the per-call timeout.

Required env (unless passed explicitly):
  - OPENROUTER_API_KEY
Optional env:
  - RESEARCH_MODEL_ID, OPENROUTER_API_URL, RESEARCH_REQUEST_TIMEOUT,
    RESEARCH_LOG_MAX_ENTRIES, RESEARCH_HTTP_REFERER
"""

from __future__ import annotations

import logging
import os
from typing import List, Optional, Sequence, Union

import requests

from research_state_manager import (
    NO_ANALYSIS_FALLBACK,
    NO_SYNTHESIS_FALLBACK,
    DeepResearchMap,
    FinalReport,
    PerspectiveResult,
    ResearchDepth,
    RunState,
    TopicAnalysis,
)

from .completion_client import (
    DEFAULT_API_URL,
    DEFAULT_MODEL_ID,
    DEFAULT_TIMEOUT_SECONDS,
    CompletionClient,
    CompletionServiceConfig,
    user_messages,
)
from .errors import CancellationFault, EmptyGenerationFault, ResearchFault
from .perspective_parser import parse_perspectives
from .perspective_pipeline import PerspectivePipeline
from .research_prompts import (
    global_synthesis_prompt,
    perspective_generation_prompt,
    research_summary,
    topic_analysis_prompt,
    truncate_for_log,
)
from .telemetry import DEFAULT_LOG_CAPACITY, ResearchObserver, TelemetrySink

logger = logging.getLogger(__name__)

TOTAL_PHASES = 4
MIN_KEPT_PERSPECTIVES = 3


def _env_number(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r; using %s.", name, raw, default)
        return default


class ResearchOrchestrator:
    """Drives one research run; create a new instance per topic."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_id: Optional[str] = None,
        constraints: str = "",
        observer: Optional[ResearchObserver] = None,
        *,
        base_url: Optional[str] = None,
        request_timeout: Optional[float] = None,
        log_max_entries: Optional[int] = None,
        http_referer: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        api_key = api_key or os.getenv("OPENROUTER_API_KEY")
        if not api_key:
            raise EnvironmentError("OPENROUTER_API_KEY is not set.")
        model_id = model_id or os.getenv("RESEARCH_MODEL_ID") or DEFAULT_MODEL_ID
        if request_timeout is None:
            request_timeout = _env_number("RESEARCH_REQUEST_TIMEOUT", DEFAULT_TIMEOUT_SECONDS)
        if log_max_entries is None:
            log_max_entries = int(_env_number("RESEARCH_LOG_MAX_ENTRIES", DEFAULT_LOG_CAPACITY))

        self._state = RunState(api_key=api_key, model_id=model_id, constraints=constraints or "")
        self._observer = observer or ResearchObserver()
        self._sink = TelemetrySink(capacity=log_max_entries, observer=self._observer)
        self._client = CompletionClient(
            config=CompletionServiceConfig(
                api_key=api_key,
                model_id=model_id,
                base_url=base_url or os.getenv("OPENROUTER_API_URL", DEFAULT_API_URL),
                timeout=request_timeout,
                referer=http_referer or os.getenv("RESEARCH_HTTP_REFERER"),
            ),
            log=self._log,
            ensure_active=self._ensure_active,
            session=session,
        )
        self._pipeline = PerspectivePipeline(
            client=self._client,
            constraints=self._state.constraints,
            ensure_active=self._ensure_active,
        )
        logger.info("Initialised research orchestrator with model '%s'", model_id)

    # ------------------------------------------------------------------
    # Run lifecycle
    # ------------------------------------------------------------------
    @property
    def active(self) -> bool:
        return self._state.active

    @property
    def model_id(self) -> str:
        return self._state.model_id

    @property
    def research_log(self) -> List[str]:
        """Rendered log lines, oldest first."""

        return self._sink.lines()

    def cancel(self) -> None:
        self._state.active = False

    def close(self) -> None:
        self._client.close()

    def conduct_research(
        self,
        topic: str,
        depth: Union[ResearchDepth, str] = ResearchDepth.EXTREME,
        iterations: int = 5,
    ) -> FinalReport:
        self._ensure_active()
        depth = ResearchDepth.parse(depth)
        if iterations < 1:
            raise ValueError("iterations must be at least 1.")
        self._log("Initializing full research workflow...")

        self._observer.on_phase_label("Phase 1/4: Topic analysis")
        topic_analysis = self.analyze_topic(topic)
        self._observer.on_phase_progress(1, TOTAL_PHASES)

        self._observer.on_phase_label("Phase 2/4: Perspectives")
        perspectives = self.gather_perspectives(topic, topic_analysis, iterations)
        self._observer.on_phase_progress(2, TOTAL_PHASES)

        self._observer.on_phase_label("Phase 3/4: Deep research")
        deep_research = self.deep_research(perspectives, depth, iterations)
        self._observer.on_phase_progress(3, TOTAL_PHASES)

        self._observer.on_phase_label("Phase 4/4: Global synthesis")
        synthesis = self.synthesize_findings(deep_research, topic)
        self._observer.on_phase_progress(4, TOTAL_PHASES)

        self._log("Research workflow completed successfully.")
        return FinalReport(
            topic=topic,
            topic_analysis=topic_analysis,
            perspectives=perspectives,
            deep_research=deep_research,
            synthesis=synthesis,
            research_log=self.research_log,
        )

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------
    def analyze_topic(self, topic: str) -> TopicAnalysis:
        self._ensure_active()
        self._log("Phase 1: Analyzing research topic...")
        analysis = self._client.complete(
            user_messages(topic_analysis_prompt(topic)),
            max_tokens=2000,
            temperature=0.15,
            label="Topic analysis",
        )
        self._log("Topic analysis completed.")
        return TopicAnalysis(analysis=analysis or NO_ANALYSIS_FALLBACK)

    def gather_perspectives(
        self,
        topic: str,
        topic_analysis: Optional[TopicAnalysis],
        iterations: int,
    ) -> List[str]:
        self._ensure_active()
        self._log("Phase 2: Generating research perspectives...")
        analysis = topic_analysis.analysis if topic_analysis else ""
        raw = self._client.complete(
            user_messages(perspective_generation_prompt(topic, analysis, iterations)),
            max_tokens=3000,
            temperature=0.35,
            label="Perspective generation",
        )

        perspectives = parse_perspectives(raw)
        if not perspectives:
            raise EmptyGenerationFault("No perspectives could be parsed from the model response.")

        kept = perspectives[: max(iterations, MIN_KEPT_PERSPECTIVES)]
        self._log(f"Generated {len(kept)} research perspectives.")
        return kept

    def deep_research(
        self,
        perspectives: Sequence[str],
        depth: Union[ResearchDepth, str],
        iterations: int,
    ) -> DeepResearchMap:
        self._ensure_active()
        depth = ResearchDepth.parse(depth)
        if iterations < 1:
            raise ValueError("iterations must be at least 1.")
        self._log("Phase 3: Running deep research across perspectives...")

        results: DeepResearchMap = {}
        total = min(len(perspectives), iterations)
        for index, perspective in enumerate(perspectives[:total], start=1):
            label_prefix = f"Perspective {index}/{total}"
            self._log(f'{label_prefix}: Deep research for "{truncate_for_log(perspective, 80)}"')
            try:
                results[perspective] = self._pipeline.run(perspective, depth, label_prefix)
            except CancellationFault:
                raise
            except ResearchFault as exc:
                self._log(f"{label_prefix}: Failed - {truncate_for_log(str(exc), 160)}", "error")
                results[perspective] = PerspectiveResult.failed(str(exc))

        self._log("Deep research phase completed.")
        return results

    def synthesize_findings(self, research: Optional[DeepResearchMap], topic: str) -> str:
        self._ensure_active()
        self._log("Phase 4: Synthesizing cross-perspective findings...")

        findings = [
            (perspective, result.synthesis or result.initial_research, result.error)
            for perspective, result in (research or {}).items()
        ]
        summary = research_summary(topic, findings)
        synthesis = self._client.complete(
            user_messages(global_synthesis_prompt(topic, summary)),
            max_tokens=5000,
            temperature=0.16,
            label="Global synthesis",
        )
        self._log("Global synthesis completed.")
        return synthesis or NO_SYNTHESIS_FALLBACK

    # ------------------------------------------------------------------
    # Run state helpers
    # ------------------------------------------------------------------
    def _ensure_active(self) -> None:
        if not self._state.active:
            raise CancellationFault()

    def _log(self, message: str, level: str = "info") -> None:
        self._ensure_active()
        self._sink.append(message, level)
