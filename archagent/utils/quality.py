"""Quality check: deterministic completeness/consistency scoring of produced artifacts.

Only observes whether each expected artifact exists and is non-empty; content
semantics are never inspected.
"""

from collections.abc import Mapping
from pathlib import Path

from archagent.models import QualityReport

CONSISTENCY_FLOOR = 60
WARNING_PENALTY = 5


def _artifact_state(value) -> str:
    """Classify one artifact as 'present', 'empty' or 'missing'."""
    if value is None:
        return "missing"
    if isinstance(value, Path):
        if not value.is_file():
            return "missing"
        return "present" if value.stat().st_size > 0 else "empty"
    return "present" if len(value) > 0 else "empty"


def validate_quality(
    artifacts: Mapping[str, str | bytes | Path | None] | list[Path],
    assumption_count: int,
) -> QualityReport:
    """Score the expected artifacts.

    ``artifacts`` is either a list of paths (checked on disk) or a mapping from
    artifact id to its content (``None`` meaning missing).
    """
    if isinstance(artifacts, Mapping):
        items = list(artifacts.items())
    else:
        items = [(str(p), Path(p)) for p in artifacts]

    warnings = []
    present = 0
    for name, value in items:
        state = _artifact_state(value)
        if state == "present":
            present += 1
        elif state == "empty":
            warnings.append(f"Empty artifact: {name}")
        else:
            warnings.append(f"Missing artifact: {name}")

    total = len(items)
    completeness = 0 if total == 0 else round(100 * present / total)
    consistency = (
        100 if not warnings
        else max(CONSISTENCY_FLOOR, 100 - WARNING_PENALTY * len(warnings))
    )

    return QualityReport(
        completeness_score=completeness,
        consistency_score=consistency,
        assumption_count=assumption_count,
        warnings=warnings,
    )
