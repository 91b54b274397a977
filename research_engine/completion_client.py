"""
HTTP client for an OpenAI-compatible chat-completions endpoint.

Each call issues exactly one POST and normalises the outcome: either the text
of the first choice, or one `ResearchFault` subclass whose message starts
with the caller-supplied label.  Nothing is retried here.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, NoReturn, Optional, Sequence

import requests

from .errors import (
    HttpFault,
    MalformedResponseFault,
    NetworkFault,
    ParseFault,
    TimeoutFault,
    UsageFault,
)

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_MODEL_ID = "anthropic/claude-3.5-sonnet"
DEFAULT_MAX_TOKENS = 4000
DEFAULT_TIMEOUT_SECONDS = 180.0
DEFAULT_TITLE = "Advanced Research Tool"

# Single-byte reads return as soon as anything arrives, so the deadline is
# checked for every byte a slow server sends.
_READ_CHUNK_SIZE = 1

LogFn = Callable[[str, str], Any]
Message = Dict[str, str]


@dataclass(slots=True)
class CompletionServiceConfig:
    """Connection details for the completion service."""

    api_key: str
    model_id: str = DEFAULT_MODEL_ID
    base_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    title: str = DEFAULT_TITLE
    referer: Optional[str] = None


def _default_log(message: str, level: str = "info") -> None:
    logger.log(logging.ERROR if level == "error" else logging.INFO, message)


def _noop() -> None:
    return None


def first_choice_content(data: Any) -> Optional[str]:
    """Return `choices[0].message.content` when present as a string."""

    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    return content if isinstance(content, str) else None


class CompletionClient:
    """
    Minimal chat-completions client.

    `log` receives `(message, level)` for every step of a call; the research
    orchestrator passes its own logger so events land in the run log.
    `ensure_active` is invoked before anything else on every call and is
    expected to raise when the owning run has been cancelled.
    """

    def __init__(
        self,
        *,
        config: CompletionServiceConfig,
        log: Optional[LogFn] = None,
        ensure_active: Optional[Callable[[], None]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._config = config
        self._log = log or _default_log
        self._ensure_active = ensure_active or _noop
        self._session = session or requests.Session()
        default_headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {config.api_key}",
            "X-Title": config.title,
        }
        if config.referer:
            default_headers["HTTP-Referer"] = config.referer
        self._session.headers.update(default_headers)
        logger.debug("Initialising CompletionClient for %s (model %s)", config.base_url, config.model_id)

    def complete(
        self,
        messages: Sequence[Message],
        *,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = 0.2,
        label: str = "Completion call",
    ) -> str:
        self._ensure_active()
        if not messages:
            raise UsageFault("Internal error: messages array is empty.")

        payload = {
            "model": self._config.model_id,
            "messages": [dict(message) for message in messages],
            "max_tokens": max_tokens,
            "temperature": temperature,
            "stream": False,
        }
        logger.debug("Completion request payload: %s", payload)
        self._log(f"{label}: contacting model...", "info")

        deadline = time.monotonic() + self._config.timeout
        try:
            response = self._session.post(
                self._config.base_url,
                json=payload,
                timeout=self._config.timeout,
                stream=True,
            )
        except requests.exceptions.Timeout as exc:
            self._fail(self._timeout_fault(label), exc)
        except requests.exceptions.RequestException as exc:
            self._fail(NetworkFault(f"{label} network error: {exc}"), exc)

        body = self._read_body(response, deadline, label)

        logger.debug("Completion response status: %s", response.status_code)
        if not 200 <= response.status_code < 300:
            detail = self._error_detail(body)
            suffix = f" Details: {json.dumps(detail)}" if detail is not None else ""
            reason = getattr(response, "reason", None) or "Unknown error"
            self._fail(
                HttpFault(
                    f"{label} API error: {response.status_code} {reason}{suffix}",
                    status_code=response.status_code,
                    detail=detail,
                )
            )

        try:
            data = json.loads(body)
        except ValueError as exc:
            self._fail(ParseFault(f"{label} failed to parse response JSON: {exc}"), exc)

        content = first_choice_content(data)
        if content is None:
            self._fail(
                MalformedResponseFault(
                    f"{label}: malformed API response: missing choices[0].message.content"
                )
            )
        self._log(f"{label}: response received.", "info")
        return content

    def close(self) -> None:
        self._session.close()

    def _fail(self, fault: Exception, cause: Optional[BaseException] = None) -> NoReturn:
        self._log(str(fault), "error")
        raise fault from cause

    def _timeout_fault(self, label: str) -> TimeoutFault:
        return TimeoutFault(f"{label} timed out after {self._config.timeout:g}s.")

    def _read_body(self, response: requests.Response, deadline: float, label: str) -> bytes:
        """
        Collect the streamed body, failing with `TimeoutFault` once the call's
        wall-clock deadline has passed.  The `requests` timeout only bounds
        each individual read.  The response is always closed.
        """

        chunks: List[bytes] = []
        try:
            for chunk in response.iter_content(chunk_size=_READ_CHUNK_SIZE):
                if time.monotonic() > deadline:
                    self._fail(self._timeout_fault(label))
                chunks.append(chunk)
        except requests.exceptions.RequestException as exc:
            if isinstance(exc, requests.exceptions.Timeout) or time.monotonic() > deadline:
                self._fail(self._timeout_fault(label), exc)
            self._fail(NetworkFault(f"{label} network error: {exc}"), exc)
        finally:
            response.close()
        if time.monotonic() > deadline:
            self._fail(self._timeout_fault(label))
        return b"".join(chunks)

    @staticmethod
    def _error_detail(body: bytes) -> Optional[Any]:
        """Best-effort `error`/`message` field from an error body."""

        try:
            data = json.loads(body)
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        return data.get("error") or data.get("message") or None


def user_messages(prompt: str) -> List[Message]:
    return [{"role": "user", "content": prompt}]
