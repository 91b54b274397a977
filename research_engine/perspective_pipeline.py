"""Four-step deep research for a single perspective."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Union

from research_state_manager import DEPTH_PROFILES, PerspectiveResult, ResearchDepth

from .completion_client import CompletionClient, user_messages
from .research_prompts import (
    critical_analysis_prompt,
    gap_analysis_prompt,
    initial_research_prompt,
    perspective_synthesis_prompt,
)

logger = logging.getLogger(__name__)

CRITICAL_ANALYSIS_BUDGET = (2500, 0.15)
GAP_ANALYSIS_BUDGET = (2500, 0.25)
PERSPECTIVE_SYNTHESIS_BUDGET = (3000, 0.14)


class PerspectivePipeline:
    """Runs initial research, critique, gap analysis and synthesis in order.

    Each step feeds capped excerpts of the earlier steps into its prompt.  A
    fault from any step propagates untouched; isolating it is the caller's job.
    """

    def __init__(
        self,
        *,
        client: CompletionClient,
        constraints: str = "",
        ensure_active: Optional[Callable[[], None]] = None,
    ) -> None:
        self._client = client
        self._constraints = constraints
        self._ensure_active = ensure_active or (lambda: None)

    def run(
        self,
        perspective: str,
        depth: Union[ResearchDepth, str],
        label_prefix: str,
    ) -> PerspectiveResult:
        self._ensure_active()
        profile = DEPTH_PROFILES[ResearchDepth.parse(depth)]
        logger.debug("%s: depth profile %s", label_prefix, profile)

        initial_research = self._client.complete(
            user_messages(initial_research_prompt(perspective, self._constraints)),
            max_tokens=profile.max_tokens,
            temperature=profile.temperature,
            label=f"{label_prefix} - Initial research",
        )

        max_tokens, temperature = CRITICAL_ANALYSIS_BUDGET
        critical_analysis = self._client.complete(
            user_messages(critical_analysis_prompt(perspective, initial_research)),
            max_tokens=max_tokens,
            temperature=temperature,
            label=f"{label_prefix} - Critical analysis",
        )

        max_tokens, temperature = GAP_ANALYSIS_BUDGET
        identified_gaps = self._client.complete(
            user_messages(gap_analysis_prompt(perspective, initial_research, critical_analysis)),
            max_tokens=max_tokens,
            temperature=temperature,
            label=f"{label_prefix} - Gap analysis",
        )

        max_tokens, temperature = PERSPECTIVE_SYNTHESIS_BUDGET
        synthesis = self._client.complete(
            user_messages(
                perspective_synthesis_prompt(perspective, initial_research, critical_analysis, identified_gaps)
            ),
            max_tokens=max_tokens,
            temperature=temperature,
            label=f"{label_prefix} - Perspective synthesis",
        )

        return PerspectiveResult(
            initial_research=initial_research or "",
            critical_analysis=critical_analysis or "",
            identified_gaps=identified_gaps or "",
            synthesis=synthesis or "",
        )
