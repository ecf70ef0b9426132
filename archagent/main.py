"""Entry point: validates arguments, runs the pipeline, reports the output directory.

Exit codes: 0 success, 2 usage/input error, 1 unexpected failure.
"""

import argparse
import sys

from archagent.config import get_config
from archagent.errors import ArchAgentError, InvalidInputError
from archagent.pipeline import MODES, run_pipeline
from archagent.utils.diagrams import create_renderer


def _build_parser() -> argparse.ArgumentParser:
    config = get_config()
    parser = argparse.ArgumentParser(
        prog="archagent",
        description="Generate a validated software-architecture document from a requirements file.",
    )
    parser.add_argument("--input", required=True, help="Path to a .md or .json requirements file")
    parser.add_argument("--out", default=config.get("output_root", "artifacts"),
                        help="Output directory (default: %(default)s)")
    parser.add_argument("--mode", default=config.get("mode", "auto"),
                        type=str.lower, choices=[*MODES, "ollama"],
                        help="auto | generation | heuristic (default: %(default)s)")
    parser.add_argument("--model", default=config["generation_model"],
                        help="Generation model name (default: %(default)s)")
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 2

    # One renderer handle per process
    renderer = create_renderer()

    try:
        result = run_pipeline(
            args.input, out_dir=args.out, mode=args.mode, model=args.model, renderer=renderer
        )
    except InvalidInputError as exc:
        print(exc.message, file=sys.stderr)
        return 2
    except ArchAgentError as exc:
        print(f"Fatal error ({exc.kind.value}): {exc.message}", file=sys.stderr)
        return 1
    except Exception as exc:
        print(f"Fatal error: {exc}", file=sys.stderr)
        return 1

    for warning in result.warnings:
        print(f"[archagent] Warning: {warning}", file=sys.stderr)
    print(f"[archagent] Decision: {result.decision.style} ({result.source})", file=sys.stderr)
    print(f"[archagent] Quality: completeness {result.quality.completeness_score}, "
          f"consistency {result.quality.consistency_score}", file=sys.stderr)
    print(f"Artifacts written to: {result.output_root}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
