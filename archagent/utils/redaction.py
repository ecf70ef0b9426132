"""Secret redaction for the prompt/response run trace."""

import re

_KEY_VALUE_RE = re.compile(
    r"(?i)(api_key|apikey|token|secret|password|passwd|bearer)\s*[:=]\s*([^\s]+)"
)
_BEARER_RE = re.compile(r"(?i)bearer\s+[A-Za-z0-9\-._~+/]+=*")


def redact(text: str) -> str:
    if not text:
        return text
    redacted = _KEY_VALUE_RE.sub(r"\1: [REDACTED]", text)
    return _BEARER_RE.sub("Bearer [REDACTED]", redacted)
