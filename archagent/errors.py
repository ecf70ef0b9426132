"""Error taxonomy: one exception type per failure kind, each with structured detail.

Callers branch on ``exc.kind`` (or the concrete class). Every variant carries the
fields needed to reproduce the failure, not just a message string.
"""

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    SERVICE_UNREACHABLE = "service_unreachable"
    MODEL_NOT_FOUND = "model_not_found"
    TIMEOUT = "timeout"
    INVALID_SERVICE_RESPONSE = "invalid_service_response"
    STRUCTURAL_PARSE = "structural_parse"
    CONTRACT_VIOLATION = "contract_violation"
    COMBINED_DIAGRAM = "combined_diagram"
    RENDERING_FAILURE = "rendering_failure"


class ArchAgentError(Exception):
    """Base class for every error archagent raises on purpose."""

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(ArchAgentError, ValueError):
    """Empty prompt, missing input file, or unsupported input format."""

    kind = ErrorKind.INVALID_INPUT


# --- Generation transport layer ---


class GenerationError(ArchAgentError):
    """A generation call failed before producing text."""


class ServiceUnreachableError(GenerationError):
    kind = ErrorKind.SERVICE_UNREACHABLE

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ModelNotFoundError(GenerationError):
    kind = ErrorKind.MODEL_NOT_FOUND

    def __init__(self, model: str):
        super().__init__(f"Model '{model}' not found. Pull it with: ollama pull {model}")
        self.model = model


class GenerationTimeoutError(GenerationError):
    kind = ErrorKind.TIMEOUT

    def __init__(self, timeout_seconds: float):
        super().__init__(f"Generation request timed out after {timeout_seconds:g}s.")
        self.timeout_seconds = timeout_seconds


class InvalidServiceResponseError(GenerationError):
    """The service answered, but without a string ``message.content``."""

    kind = ErrorKind.INVALID_SERVICE_RESPONSE


# --- Response contract ---


class StructuralParseError(ArchAgentError):
    """Raw generated text is not parseable JSON."""

    kind = ErrorKind.STRUCTURAL_PARSE

    def __init__(self, detail: str):
        super().__init__(f"Response is not valid JSON: {detail}")
        self.detail = detail


class ContractViolationError(ArchAgentError):
    """Parsed JSON does not satisfy the Architecture Response Contract."""

    kind = ErrorKind.CONTRACT_VIOLATION

    def __init__(self, path: str, detail: str):
        super().__init__(f"Contract violation at '{path}': {detail}")
        self.path = path
        self.detail = detail


class CombinedDiagramError(ArchAgentError):
    """Diagrams still invalid after the single diagram repair attempt."""

    kind = ErrorKind.COMBINED_DIAGRAM

    def __init__(self, violations: list[str]):
        super().__init__(
            "Mermaid diagrams are invalid after one repair attempt: " + "; ".join(violations)
        )
        self.violations = list(violations)


class RenderingFailure(ArchAgentError):
    """A diagram could not be rendered, even after auto-fix."""

    kind = ErrorKind.RENDERING_FAILURE

    def __init__(self, diagram: str, detail: str):
        super().__init__(f"Diagram '{diagram}' could not be rendered: {detail}")
        self.diagram = diagram
        self.detail = detail
