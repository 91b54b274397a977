from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional

import pytest

INVALID_JSON = object()


@dataclass
class _FakeResponse:
    status_code: int = 200
    payload: Any = None
    reason: str = "OK"
    closed: bool = False

    def body(self) -> bytes:
        if self.payload is INVALID_JSON:
            return b"<html>Bad gateway</html>"
        return json.dumps(self.payload).encode("utf-8")

    def iter_content(self, chunk_size: int = 1) -> Iterator[bytes]:
        data = self.body()
        for start in range(0, len(data), chunk_size):
            yield data[start : start + chunk_size]

    def close(self) -> None:
        self.closed = True


def completion(content: Any) -> _FakeResponse:
    return _FakeResponse(200, payload={"choices": [{"message": {"role": "assistant", "content": content}}]})


PERSPECTIVE_LIST = "\n".join(
    [
        "Here are the perspectives:",
        "1. Neurobiology: synaptic consolidation during slow-wave sleep",
        "2. Cognitive psychology: behavioural memory tasks",
        "3. Epidemiology: sleep duration and cognitive decline",
        "4. Chronobiology: circadian timing of learning",
        "5. Clinical: insomnia treatment outcomes",
    ]
)


def default_reply(prompt: str) -> str:
    """Canned model output keyed on the opening words of each template."""

    if prompt.startswith("Perform a comprehensive analysis"):
        return "Topic analysis text."
    if prompt.startswith("Based on the topic"):
        return PERSPECTIVE_LIST
    if prompt.startswith("Conduct a thorough investigation"):
        return "Initial research text."
    if prompt.startswith("Critically evaluate"):
        return "Critical analysis text."
    if prompt.startswith("Using the perspective"):
        return "Gap analysis text."
    if prompt.startswith("Synthesize a cohesive view"):
        return "Perspective synthesis text."
    if prompt.startswith("Synthesize comprehensive research findings"):
        return "Global synthesis text."
    raise AssertionError(f"Unexpected prompt: {prompt[:60]}")


def default_responder(payload: Dict[str, Any]) -> _FakeResponse:
    return completion(default_reply(payload["messages"][0]["content"]))


@dataclass
class ScriptedSession:
    """Stands in for `requests.Session`; answers from a responder callable."""

    responder: Callable[[Dict[str, Any]], Any] = field(default=lambda payload: default_responder(payload))
    headers: Dict[str, str] = field(default_factory=dict)
    calls: List[Dict[str, Any]] = field(default_factory=list)
    closed: bool = False
    on_post: Optional[Callable[[], None]] = None

    def post(self, url: str, *, json: Dict[str, Any], timeout: float, stream: bool = False) -> Any:
        self.calls.append({"url": url, "json": json, "timeout": timeout, "stream": stream})
        if self.on_post:
            self.on_post()
        outcome = self.responder(json)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def close(self) -> None:
        self.closed = True

    @property
    def prompts(self) -> List[str]:
        return [call["json"]["messages"][0]["content"] for call in self.calls]


@pytest.fixture
def session() -> ScriptedSession:
    return ScriptedSession()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for name in (
        "OPENROUTER_API_KEY",
        "RESEARCH_MODEL_ID",
        "OPENROUTER_API_URL",
        "RESEARCH_REQUEST_TIMEOUT",
        "RESEARCH_LOG_MAX_ENTRIES",
        "RESEARCH_HTTP_REFERER",
    ):
        monkeypatch.delenv(name, raising=False)
