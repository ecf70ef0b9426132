"""Requirement extraction from Markdown and JSON input files.

Markdown input uses headings (any level) to open sections. Recognized headings:
Goal, Users / Actors, Core Features, Integrations, Data, Constraints,
Non-Functional Requirements, Key Flows. Lines under other headings are ignored.
"""

import json
from pathlib import Path

from archagent.errors import InvalidInputError
from archagent.models import RequirementModel
from archagent.utils.validator import validate_input_path

SECTION_MAP = {
    "goal": "goal",
    "users / actors": "actors",
    "users/actors": "actors",
    "users": "actors",
    "actors": "actors",
    "core features": "features",
    "features": "features",
    "integrations": "integrations",
    "data": "data_entities",
    "data entities": "data_entities",
    "constraints": "constraints",
    "non-functional requirements": "nfrs",
    "nfr": "nfrs",
    "nfrs": "nfrs",
    "key flows": "key_flows",
    "key flow": "key_flows",
}


def _list_item(line: str) -> str:
    if line.startswith(("- ", "* ")):
        return line[2:].strip()
    if line[:1].isdigit() and "." in line:
        return line[line.index(".") + 1:].strip()
    return line


def _parse_nfr_lines(lines: list[str]) -> dict[str, str]:
    result: dict[str, str] = {}
    for line in lines:
        item = line.lstrip("-*").strip()
        key, sep, value = item.partition(":")
        if sep and key.strip():
            result[key.strip()] = value.strip()
        elif item:
            result[f"NFR-{len(result) + 1}"] = item
    return result


def parse_markdown_text(text: str) -> RequirementModel:
    sections: dict[str, list[str]] = {}
    current = None

    for raw in text.splitlines():
        line = raw.strip()
        if line.startswith("#"):
            current = SECTION_MAP.get(line.lstrip("#").strip().lower())
            if current is not None:
                sections.setdefault(current, [])
            continue
        if current is None or not line:
            continue
        sections[current].append(line)

    data = {
        key: [item for item in (_list_item(line) for line in lines) if item]
        for key, lines in sections.items()
        if key not in ("goal", "nfrs")
    }
    return RequirementModel(
        goal=" ".join(sections.get("goal", [])),
        nfrs=_parse_nfr_lines(sections.get("nfrs", [])),
        **data,
    )


def _string_list(root: dict, *names: str) -> list[str]:
    for name in names:
        if name not in root:
            continue
        value = root[name]
        if isinstance(value, list):
            return [item for item in value if isinstance(item, str)]
        if isinstance(value, str):
            return [value]
    return []


def _nfrs(root: dict) -> dict[str, str]:
    value = root.get("nfr", root.get("nfrs"))
    if isinstance(value, dict):
        return {k: v if isinstance(v, str) else json.dumps(v) for k, v in value.items()}
    if isinstance(value, list):
        items = [item for item in value if isinstance(item, str)]
        return {f"NFR-{i}": item for i, item in enumerate(items, 1)}
    return {}


def parse_json_text(text: str) -> RequirementModel:
    try:
        root = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidInputError(f"Input JSON is not valid: {exc}") from exc
    if not isinstance(root, dict):
        raise InvalidInputError("Input JSON must be an object.")

    goal = root.get("goal")
    return RequirementModel(
        goal=goal if isinstance(goal, str) else "",
        actors=_string_list(root, "actors"),
        features=_string_list(root, "features"),
        integrations=_string_list(root, "integrations"),
        data_entities=_string_list(root, "dataEntities", "data_entities", "data"),
        constraints=_string_list(root, "constraints"),
        key_flows=_string_list(root, "keyFlows", "key_flows"),
        nfrs=_nfrs(root),
    )


def parse_input(path: str | Path) -> RequirementModel:
    """Extract a raw (not yet normalized) RequirementModel from a .md or .json file."""
    p = validate_input_path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise InvalidInputError(f"Input file could not be read: {p} ({exc})") from exc
    if p.suffix.lower() == ".json":
        return parse_json_text(text)
    return parse_markdown_text(text)
