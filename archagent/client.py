"""Generation client: one bounded-timeout Ollama chat call with classified failures."""

import json
import re
from time import monotonic

import httpx

from archagent.config import get_config
from archagent.errors import (
    GenerationTimeoutError,
    InvalidServiceResponseError,
    ModelNotFoundError,
    ServiceUnreachableError,
)
from archagent.utils.parsing import call_with_retry

_MODEL_WORD_RE = re.compile(r"model", re.IGNORECASE)
_MODEL_MISSING_RE = re.compile(r"not found|missing|pull", re.IGNORECASE)


def is_model_not_found(body: str) -> bool:
    return bool(_MODEL_WORD_RE.search(body) and _MODEL_MISSING_RE.search(body))


class OllamaClient:
    """Sync client for Ollama's ``/api/chat`` endpoint.

    ``invoke`` is the single call the repair graph makes. Transport faults are
    retried here (a fixed, small number of times); contract faults are not.
    """

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
        timeout_seconds: float | None = None,
        max_attempts: int | None = None,
        backoff_seconds: float | None = None,
        response_format: dict | None = None,
        http_client: httpx.Client | None = None,
    ):
        config = get_config()
        self.base_url = (base_url or config["ollama_url"]).rstrip("/")
        self.model = model or config["generation_model"]
        self.timeout_seconds = timeout_seconds or config["timeout_seconds"]
        self.max_attempts = max_attempts or config.get("transport_max_attempts", 2)
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None
            else config.get("transport_backoff_seconds", 0.3)
        )
        self.response_format = response_format
        self._http = http_client or httpx.Client(timeout=self.timeout_seconds)

    def _post(self, payload: dict) -> tuple[int, str]:
        """POST and read the whole body, enforcing ``timeout_seconds`` as a total deadline."""
        deadline = monotonic() + self.timeout_seconds
        chunks = []
        with self._http.stream(
            "POST", f"{self.base_url}/api/chat", json=payload, timeout=self.timeout_seconds
        ) as response:
            for chunk in response.iter_bytes():
                if monotonic() > deadline:
                    raise GenerationTimeoutError(self.timeout_seconds)
                chunks.append(chunk)
        if monotonic() > deadline:
            raise GenerationTimeoutError(self.timeout_seconds)
        return response.status_code, b"".join(chunks).decode("utf-8", errors="replace")

    def chat(self, messages: list[dict]) -> str:
        """Issue exactly one request and return ``message.content``."""
        payload = {
            "model": self.model,
            "messages": messages,
            "stream": False,
            "options": {"temperature": 0},
        }
        if self.response_format is not None:
            payload["format"] = self.response_format

        try:
            status_code, body = self._post(payload)
        except httpx.TimeoutException as exc:
            raise GenerationTimeoutError(self.timeout_seconds) from exc
        except httpx.TransportError as exc:
            raise ServiceUnreachableError(
                f"Ollama is unreachable at {self.base_url}: {exc}"
            ) from exc

        if not 200 <= status_code < 300:
            if is_model_not_found(body):
                raise ModelNotFoundError(self.model)
            raise ServiceUnreachableError(
                f"Ollama request failed ({status_code}). {body or 'No error body returned.'}",
                status_code=status_code,
                body=body,
            )

        try:
            parsed = json.loads(body)
        except ValueError as exc:
            raise ServiceUnreachableError(
                "Ollama returned a non-JSON response.", status_code=status_code, body=body
            ) from exc

        message = parsed.get("message") if isinstance(parsed, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise InvalidServiceResponseError("Ollama response did not include message.content.")
        return content

    def invoke(self, messages: list[dict]) -> str:
        """``chat`` with transport retry (fixed attempts, fixed backoff)."""
        return call_with_retry(
            self.chat,
            messages,
            max_attempts=self.max_attempts,
            backoff_seconds=self.backoff_seconds,
        )

    def close(self) -> None:
        self._http.close()
