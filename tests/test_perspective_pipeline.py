from __future__ import annotations

import pytest

from conftest import ScriptedSession, _FakeResponse, completion, default_responder
from research_engine.completion_client import CompletionClient, CompletionServiceConfig
from research_engine.errors import CancellationFault, HttpFault
from research_engine.perspective_pipeline import PerspectivePipeline
from research_state_manager import ResearchDepth


def _pipeline(session: ScriptedSession, constraints: str = "", ensure_active=None):
    labels = []

    def log(message: str, level: str) -> None:
        labels.append(message)

    client = CompletionClient(config=CompletionServiceConfig(api_key="sk-test"), log=log, session=session)
    return PerspectivePipeline(client=client, constraints=constraints, ensure_active=ensure_active), labels


@pytest.mark.parametrize(
    "depth, budget",
    [
        (ResearchDepth.NORMAL, (3000, 0.22)),
        ("advanced", (4000, 0.18)),
        ("EXTREME", (6000, 0.12)),
    ],
)
def test_initial_research_budget_follows_depth(session, depth, budget) -> None:
    pipeline, _ = _pipeline(session)
    pipeline.run("Neurobiology: consolidation", depth, "Perspective 1/3")
    first = session.calls[0]["json"]
    assert (first["max_tokens"], first["temperature"]) == budget


def test_four_calls_in_order_with_fixed_budgets(session) -> None:
    pipeline, labels = _pipeline(session, constraints="Focus on adults")
    result = pipeline.run("Neurobiology: consolidation", "normal", "Perspective 2/3")

    budgets = [(call["json"]["max_tokens"], call["json"]["temperature"]) for call in session.calls]
    assert budgets == [(3000, 0.22), (2500, 0.15), (2500, 0.25), (3000, 0.14)]
    assert [message for message in labels if message.endswith("contacting model...")] == [
        "Perspective 2/3 - Initial research: contacting model...",
        "Perspective 2/3 - Critical analysis: contacting model...",
        "Perspective 2/3 - Gap analysis: contacting model...",
        "Perspective 2/3 - Perspective synthesis: contacting model...",
    ]
    assert "respect these constraints / addons:\nFocus on adults" in session.prompts[0]
    assert "Initial research text." in session.prompts[1]
    assert "Critical analysis text." in session.prompts[2]
    assert "Gap analysis text." in session.prompts[3]

    assert result.ok
    assert result.initial_research == "Initial research text."
    assert result.critical_analysis == "Critical analysis text."
    assert result.identified_gaps == "Gap analysis text."
    assert result.synthesis == "Perspective synthesis text."


def test_fault_in_a_step_stops_the_sub_pipeline() -> None:
    def responder(payload):
        if payload["messages"][0]["content"].startswith("Critically evaluate"):
            return _FakeResponse(500, payload={"message": "upstream"}, reason="Internal Server Error")
        return default_responder(payload)

    session = ScriptedSession(responder=responder)
    pipeline, _ = _pipeline(session)
    with pytest.raises(HttpFault) as excinfo:
        pipeline.run("Angle", "normal", "Perspective 1/1")
    assert str(excinfo.value).startswith("Perspective 1/1 - Critical analysis API error: 500")
    assert len(session.calls) == 2


def test_inactive_run_is_rejected_before_any_call(session) -> None:
    def ensure_active() -> None:
        raise CancellationFault()

    pipeline, _ = _pipeline(session, ensure_active=ensure_active)
    with pytest.raises(CancellationFault):
        pipeline.run("Angle", "normal", "Perspective 1/1")
    assert session.calls == []


def test_unknown_depth_is_rejected(session) -> None:
    pipeline, _ = _pipeline(session)
    with pytest.raises(ValueError):
        pipeline.run("Angle", "deep", "Perspective 1/1")
    assert session.calls == []


def test_empty_step_output_is_kept_empty() -> None:
    session = ScriptedSession(responder=lambda payload: completion(""))
    pipeline, _ = _pipeline(session)
    result = pipeline.run("Angle", "normal", "Perspective 1/1")
    assert result.ok
    assert result.synthesis == ""
