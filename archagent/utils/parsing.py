"""Shared parsing and transport-retry utilities for generation responses."""

import re
import sys

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from archagent.errors import GenerationTimeoutError, ServiceUnreachableError

_FENCE_RE = re.compile(r"```(?:[A-Za-z0-9_-]+)?[ \t]*\n?(.*?)\n?\s*```", re.DOTALL)
_LANG_TAG_RE = re.compile(r"^(?:json|mermaid)[ \t]*\r?\n", re.IGNORECASE)

# Transport faults only. Contract and diagram faults go through the repair graph.
TRANSIENT_ERRORS = (ServiceUnreachableError, GenerationTimeoutError)


def strip_fences(text: str) -> str:
    """Strip markdown code fences and a leading standalone language-tag line.

    Text that already starts with a JSON object or array is left alone, so fences
    embedded inside JSON string values are never touched.
    """
    value = text.strip()
    if not value.startswith(("{", "[")):
        match = _FENCE_RE.search(value)
        if match:
            value = match.group(1).strip()
    return _LANG_TAG_RE.sub("", value, count=1).strip()


def call_with_retry(fn, *args, max_attempts: int = 2, backoff_seconds: float = 0.3, **kwargs):
    """Call ``fn(*args, **kwargs)``, retrying transient transport failures with a fixed backoff.

    Non-transient errors (model not found, malformed service response) are raised
    immediately. After ``max_attempts`` the last failure is re-raised.
    """

    @retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_fixed(backoff_seconds),
        retry=retry_if_exception_type(TRANSIENT_ERRORS),
        reraise=True,
        before_sleep=lambda state: print(
            f"[archagent] Transient error: {state.outcome.exception()}. "
            f"Retrying in {state.next_action.sleep:.1f}s "
            f"(attempt {state.attempt_number}/{max_attempts})...",
            file=sys.stderr,
        ),
    )
    def _call():
        return fn(*args, **kwargs)

    return _call()
