"""
Reasoning Service — LLM capability behind a narrow interface.

``invoke`` never raises: a failed call comes back as a ``ReasoningResult``
with ``ok=False`` so callers compose "try service, else fallback" explicitly.
Calls are bounded by ``LLM_TIMEOUT_SECONDS`` and are never retried.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
import json
import logging
from typing import Any, Dict, List, Optional

from opsplan.config import settings

logger = logging.getLogger(__name__)

Message = Dict[str, str]


@dataclass
class ReasoningResult:
    ok: bool
    content: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "ReasoningResult":
        return cls(ok=False, error=error)

    def json_payload(self) -> Dict[str, Any]:
        """Parse the content as a JSON object; raises ValueError when it is not one."""
        if not self.ok or not self.content:
            raise ValueError(self.error or "empty reasoning response")
        return extract_json_payload(self.content)


class ReasoningService(ABC):
    """Base capability; concrete services implement ``invoke``."""

    enabled = False

    @abstractmethod
    def invoke(self, messages: List[Message], schema: Optional[Dict[str, Any]] = None) -> ReasoningResult:
        """Send ``messages`` and return the reply, or a failed result."""


class UnavailableReasoningService(ReasoningService):
    def __init__(self, reason: str = "OPENAI_API_KEY not configured") -> None:
        self._reason = reason

    def invoke(self, messages: List[Message], schema: Optional[Dict[str, Any]] = None) -> ReasoningResult:
        return ReasoningResult.failure(self._reason)


class OpenAIReasoningService(ReasoningService):
    """Chat-completions backed reasoning with a hard timeout and no SDK retries."""

    enabled = True

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self._api_key = api_key or settings.OPENAI_API_KEY
        self._model = model or settings.LLM_MODEL
        self._temperature = settings.LLM_TEMPERATURE if temperature is None else temperature
        self._timeout = timeout_seconds or settings.LLM_TIMEOUT_SECONDS
        self._client = None

    def _get_client(self):
        if self._client is None:
            from openai import OpenAI

            self._client = OpenAI(api_key=self._api_key, timeout=self._timeout, max_retries=0)
        return self._client

    def invoke(self, messages: List[Message], schema: Optional[Dict[str, Any]] = None) -> ReasoningResult:
        request: Dict[str, Any] = {
            "model": self._model,
            "temperature": self._temperature,
            "messages": list(messages),
        }
        if schema is not None:
            request["response_format"] = {"type": "json_object"}
            request["messages"] = [
                {
                    "role": "system",
                    "content": "Respond ONLY with a JSON object matching this schema: " + json.dumps(schema),
                },
                *messages,
            ]

        try:
            response = self._get_client().chat.completions.create(**request)
        except Exception as exc:  # noqa: BLE001
            logger.warning("reasoning_call_failed model=%s error=%s", self._model, exc)
            return ReasoningResult.failure(str(exc))

        content = response.choices[0].message.content if response.choices else None
        if not content:
            return ReasoningResult.failure("empty completion")
        return ReasoningResult(ok=True, content=content)


def get_reasoning_service() -> ReasoningService:
    if not settings.OPENAI_API_KEY:
        return UnavailableReasoningService()
    return OpenAIReasoningService()


def extract_json_payload(text: str) -> Dict[str, Any]:
    value = text.strip()
    if value.startswith("```"):
        value = value.strip("`")
        if value.lower().startswith("json"):
            value = value[4:]
        value = value.strip()
    start, end = value.find("{"), value.rfind("}")
    if start == -1 or end <= start:
        raise ValueError("Unable to parse reasoning JSON response")
    payload = json.loads(value[start:end + 1])
    if not isinstance(payload, dict):
        raise ValueError("Reasoning response is not a JSON object")
    return payload
