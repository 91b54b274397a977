"""
State models supporting the research workflow.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

MIN_TOPIC_LENGTH = 10
MAX_TOPIC_LENGTH = 4000
MAX_ITERATIONS = 8

NO_ANALYSIS_FALLBACK = "No analysis returned by the model."
NO_SYNTHESIS_FALLBACK = "No synthesis returned by the model."


class ResearchDepth(str, Enum):
    """Depth of the initial research call made for each perspective."""

    NORMAL = "normal"
    ADVANCED = "advanced"
    EXTREME = "extreme"

    @classmethod
    def parse(cls, value: Union["ResearchDepth", str]) -> "ResearchDepth":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(member.value for member in cls)
            raise ValueError(f"Unknown research depth {value!r}; expected one of: {allowed}.") from None


@dataclass(frozen=True, slots=True)
class DepthProfile:
    max_tokens: int
    temperature: float


DEPTH_PROFILES: Dict[ResearchDepth, DepthProfile] = {
    ResearchDepth.NORMAL: DepthProfile(max_tokens=3000, temperature=0.22),
    ResearchDepth.ADVANCED: DepthProfile(max_tokens=4000, temperature=0.18),
    ResearchDepth.EXTREME: DepthProfile(max_tokens=6000, temperature=0.12),
}


@dataclass(frozen=True, slots=True)
class TopicAnalysis:
    analysis: str


@dataclass(frozen=True, slots=True)
class PerspectiveResult:
    """Outcome of the four-step deep research for one perspective.

    A failed perspective carries `error` and leaves every text field empty.
    """

    initial_research: str = ""
    critical_analysis: str = ""
    identified_gaps: str = ""
    synthesis: str = ""
    error: Optional[str] = None

    @classmethod
    def failed(cls, message: str) -> "PerspectiveResult":
        return cls(error=message)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, str]:
        data = {
            "initial_research": self.initial_research,
            "critical_analysis": self.critical_analysis,
            "identified_gaps": self.identified_gaps,
            "synthesis": self.synthesis,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


DeepResearchMap = Dict[str, PerspectiveResult]


@dataclass(frozen=True, slots=True)
class LogEntry:
    timestamp: str
    level: str
    message: str

    @classmethod
    def create(cls, message: str, level: str = "info") -> "LogEntry":
        return cls(timestamp=datetime.now().strftime("%H:%M:%S"), level=level.lower(), message=message)

    def render(self) -> str:
        return f"[{self.timestamp}] [{self.level.upper()}] {self.message}"


@dataclass(slots=True)
class RunState:
    """Mutable state owned by exactly one orchestrator."""

    api_key: str
    model_id: str
    constraints: str = ""
    active: bool = True


@dataclass(slots=True)
class FinalReport:
    topic: str
    topic_analysis: TopicAnalysis
    perspectives: List[str]
    deep_research: DeepResearchMap
    synthesis: str
    research_log: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "topic": self.topic,
            "topic_analysis": {"analysis": self.topic_analysis.analysis},
            "perspectives": list(self.perspectives),
            "deep_research": {key: value.to_dict() for key, value in self.deep_research.items()},
            "synthesis": self.synthesis,
            "research_log": list(self.research_log),
        }

    def to_text(self) -> str:
        """Plain-text export of the report, one headed section per part."""

        parts: List[str] = ["=== Topic ===", self.topic, ""]
        parts += ["=== Topic Analysis ===", self.topic_analysis.analysis.strip(), ""]
        if self.perspectives:
            parts.append("=== Research Perspectives ===")
            parts += [f"{idx}. {perspective}" for idx, perspective in enumerate(self.perspectives, start=1)]
            parts.append("")
        if self.deep_research:
            parts.append("=== Deep Research Findings ===")
            for perspective, result in self.deep_research.items():
                parts.append(f"--- {perspective} ---")
                if not result.ok:
                    parts += [f"Error: {result.error}", ""]
                    continue
                parts += [
                    "Initial research:",
                    result.initial_research.strip(),
                    "Critical analysis:",
                    result.critical_analysis.strip(),
                    "Identified gaps:",
                    result.identified_gaps.strip(),
                    "Synthesis:",
                    result.synthesis.strip(),
                    "",
                ]
        parts += ["=== Synthesis & Conclusions ===", self.synthesis.strip(), ""]
        if self.research_log:
            parts.append("=== Research Log ===")
            parts += self.research_log
        return "\n".join(parts)


class ResearchRequest(BaseModel):
    """Validated input for one research run."""

    topic: str = Field(min_length=MIN_TOPIC_LENGTH, max_length=MAX_TOPIC_LENGTH)
    depth: ResearchDepth = ResearchDepth.EXTREME
    iterations: int = Field(default=5, ge=1, le=MAX_ITERATIONS)

    @field_validator("topic", mode="before")
    @classmethod
    def _collapse_whitespace(cls, value: object) -> object:
        if isinstance(value, str):
            return re.sub(r"\s+", " ", value).strip()
        return value

    @field_validator("depth", mode="before")
    @classmethod
    def _parse_depth(cls, value: object) -> ResearchDepth:
        return ResearchDepth.parse(value)  # type: ignore[arg-type]
