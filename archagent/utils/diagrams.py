"""Mermaid diagram syntax checks, best-effort auto-fix, and the renderer handle.

Two diagram kinds are supported: flowchart-like ("flowchart"/"graph", used for the C4
context and component views) and "sequenceDiagram".
"""

import json
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Literal

from archagent.errors import RenderingFailure
from archagent.utils.parsing import strip_fences

DiagramKind = Literal["flowchart", "sequence"]

_TABLE_ROW_RE = re.compile(r"^\s*\|.*\|\s*$")
_FLOWCHART_HEADER_RE = re.compile(r"^(flowchart|graph)\b", re.IGNORECASE)
_FLOWCHART_ARROW_RE = re.compile(r"(-->|---|-\.->|==>)")
_SEQUENCE_HEADER_RE = re.compile(r"^sequenceDiagram\b", re.IGNORECASE)
_SEQUENCE_ARROW_RE = re.compile(r"(->>|-->>|->|-->)")

_SEQUENCE_KEYWORDS = (
    "participant", "actor", "autonumber", "note", "loop", "alt", "else", "opt", "par", "and",
    "rect", "end", "activate", "deactivate", "critical", "break", "box", "title", "create", "destroy",
)
_INVERTED_PARTICIPANT_RE = re.compile(
    rf"^(?!(?:{'|'.join(_SEQUENCE_KEYWORDS)})\b)([A-Za-z_]\w*)\s+as\s+([A-Za-z_]\w*)$"
)
_PARTICIPANT_RE = re.compile(r"^participant\s+([A-Za-z_]\w*)(?:\s+as\s+(.+))?$")
_MESSAGE_RE = re.compile(r"^([A-Za-z_]\w*)\s*(?:->>|-->>|->|-->)\s*([A-Za-z_]\w*)\s*:?")

NO_DIAGRAM = "No diagram available."


def normalize_diagram(text: str) -> str:
    """Strip code fences and a leading ``mermaid`` line."""
    return strip_fences(text or "")


# --- Syntax checks ---


def flowchart_violations(name: str, text: str) -> list[str]:
    value = (text or "").strip()
    if not value:
        return [f"{name}: is empty"]

    errors = []
    lines = value.split("\n")
    if not _FLOWCHART_HEADER_RE.match(lines[0].strip()):
        errors.append(f"{name}: must start with 'flowchart' or 'graph'")
    if any(_TABLE_ROW_RE.match(line) for line in lines):
        errors.append(f"{name}: contains invalid standalone '|...|' line")
    if not _FLOWCHART_ARROW_RE.search(value):
        errors.append(f"{name}: missing relationship arrows")
    return errors


def sequence_violations(text: str, name: str = "sequence") -> list[str]:
    value = (text or "").strip()
    if not value:
        return [f"{name}: is empty"]

    errors = []
    if not _SEQUENCE_HEADER_RE.match(value.split("\n")[0].strip()):
        errors.append(f"{name}: must start with 'sequenceDiagram'")
    if not _SEQUENCE_ARROW_RE.search(value):
        errors.append(f"{name}: missing message arrows")
    return errors


def violations_for(kind: DiagramKind, name: str, text: str) -> list[str]:
    if kind == "sequence":
        return sequence_violations(text, name)
    return flowchart_violations(name, text)


# --- Auto-fix ---


def sanitize_flowchart(text: str) -> str:
    """Drop standalone ``|...|`` lines (table separators some generators emit)."""
    return "\n".join(line for line in text.split("\n") if not _TABLE_ROW_RE.match(line)).strip()


def sanitize_sequence(text: str) -> str:
    """Rewrite inverted ``Name as id`` lines and hoist participant declarations.

    Output order: header, ``autonumber`` (if present), aliased participants (``participant
    id as Name``) sorted by id, bare participants (declared plainly or implied by a message line)
    sorted by id, then the remaining body lines in their original order.
    """
    lines = text.split("\n")
    if not lines or not re.fullmatch(r"sequenceDiagram", lines[0].strip().rstrip(";"), re.IGNORECASE):
        return text

    aliased: dict[str, str] = {}
    bare: set[str] = set()
    body: list[str] = []
    has_autonumber = False

    for raw_line in lines[1:]:
        line = raw_line.strip()
        if not line:
            continue
        if line == "autonumber":
            has_autonumber = True
            continue

        inverted = _INVERTED_PARTICIPANT_RE.match(line)
        if inverted:
            display_name, pid = inverted.groups()
            aliased.setdefault(pid, f"participant {pid} as {display_name}")
            continue

        participant = _PARTICIPANT_RE.match(line)
        if participant:
            pid, alias = participant.groups()
            if alias:
                aliased.setdefault(pid, line)
            else:
                bare.add(pid)
            continue

        message = _MESSAGE_RE.match(line)
        if message:
            bare.update(message.groups())
        body.append(raw_line.rstrip())

    header = ["sequenceDiagram"]
    if has_autonumber:
        header.append("autonumber")
    header.extend(aliased[pid] for pid in sorted(aliased))
    header.extend(f"participant {pid}" for pid in sorted(bare - aliased.keys()))
    return "\n".join(header + body).strip()


def auto_fix(text: str) -> str:
    """Apply the sanitizer matching the diagram header; unknown headers pass through."""
    first_line = text.split("\n")[0].strip().rstrip(";").lower()
    if first_line == "sequencediagram":
        return sanitize_sequence(text)
    if first_line.startswith(("graph", "flowchart")):
        return sanitize_flowchart(text)
    return text


# --- Renderer handle ---


@dataclass(frozen=True)
class RenderedDiagram:
    name: str
    source: str
    ok: bool
    error: str | None = None


class DiagramRenderer:
    """Process-wide rendering handle, created once and passed to rendering calls.

    Holds the Mermaid init directive (theme, security level) prepended to every
    rendered diagram.
    """

    def __init__(self, theme: str = "default", security_level: str = "strict"):
        self.theme = theme
        self.security_level = security_level
        self.directive = "%%{init: " + json.dumps(
            {"theme": theme, "securityLevel": security_level}
        ) + "}%%"

    def render(self, name: str, kind: DiagramKind, text: str) -> RenderedDiagram:
        """Render one diagram, trying the original text and then its auto-fixed form.

        If both fail, a placeholder is returned with ``ok=False``.
        """
        try:
            return self.render_strict(name, kind, text)
        except RenderingFailure as exc:
            return RenderedDiagram(name=name, source=f"%% {NO_DIAGRAM} {exc.detail}", ok=False,
                                   error=exc.message)

    def render_strict(self, name: str, kind: DiagramKind, text: str) -> RenderedDiagram:
        normalized = normalize_diagram(text)
        if not normalized:
            raise RenderingFailure(name, NO_DIAGRAM)

        fixed = auto_fix(normalized)
        attempts = [normalized] if fixed == normalized else [normalized, fixed]
        violations: list[str] = []
        for candidate in attempts:
            violations = violations_for(kind, name, candidate)
            if not violations:
                return RenderedDiagram(name=name, source=f"{self.directive}\n{candidate}", ok=True)
        raise RenderingFailure(name, "; ".join(violations))

    def render_all(self, diagrams: dict[str, tuple[DiagramKind, str]]) -> dict[str, RenderedDiagram]:
        """Render several validated diagrams concurrently; results keep input order."""
        with ThreadPoolExecutor(max_workers=max(1, len(diagrams))) as pool:
            futures = {
                name: pool.submit(self.render, name, kind, text)
                for name, (kind, text) in diagrams.items()
            }
            return {name: future.result() for name, future in futures.items()}


def create_renderer(theme: str = "default", security_level: str = "strict") -> DiagramRenderer:
    return DiagramRenderer(theme=theme, security_level=security_level)
