"""
Command-line runner for the assessment engine.

Analyze an assessment's decision tree, export it as a Mermaid diagram, or
score a submission from a JSON file.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from assessment_engine.actions.diagram_generation import (
    build_decision_tree_mermaid,
    build_warnings_report,
    validate_decision_tree_flowchart,
    write_mermaid_artifact,
)
from assessment_engine.engine.decision_tree import compute_decision_tree
from assessment_engine.engine.errors import AssessmentEngineError
from assessment_engine.engine.loader import AssessmentLoader
from assessment_engine.graphs.submission_graph import score_submission
from assessment_engine.state.assessment_state import DEFAULT_MAX_ROUTING_STEPS


EXIT_OK = 0
EXIT_UNRESOLVED = 1
EXIT_LOAD_ERROR = 2

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    """Configure logging to write to stderr."""
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, raw)
        return default


def _print_trace(events: list[dict[str, Any]]) -> None:
    for evt in events:
        parts = [f"kind={evt.get('kind', 'event')}"]
        parts.extend(f"{k}={v}" for k, v in evt.items() if k != "kind" and v is not None)
        print("[TRACE] " + " ".join(parts))


def _load_submitted_answers(path: Path) -> list[dict[str, Any]]:
    raw = json.loads(path.read_text(encoding="utf-8"))
    # Accept either a bare list or a {"answers": [...]} submission body
    if isinstance(raw, dict):
        raw = raw.get("answers", [])
    if not isinstance(raw, list):
        raise AssessmentEngineError(f"{path} must contain a list of answers")
    return raw


def _run_analyze(loader: AssessmentLoader, slug: str, *, as_json: bool, strict: bool) -> int:
    assessment = loader.load_assessment(slug)
    graph = compute_decision_tree(assessment["config"], assessment["questions"], assessment["answers"])
    report = build_warnings_report(graph)

    if as_json:
        print(json.dumps(graph.to_dict(), indent=2))
    else:
        print(f"Assessment: {assessment['config'].get('title') or slug}")
        print(f"Entry question: {graph.entry_question_id}")
        print(
            "Counts:",
            f"nodes={len(graph.nodes)}",
            f"edges={len(graph.edges)}",
            f"reachable={len(graph.reachable_nodes)}",
            f"cycles={len(graph.cycles)}",
            f"orphaned={len(graph.orphaned_nodes)}",
        )
        for line in report:
            print(f"WARNING: {line}")

    if strict and report:
        return EXIT_UNRESOLVED
    return EXIT_OK


def _run_diagram(loader: AssessmentLoader, slug: str, *, output: Path | None) -> int:
    assessment = loader.load_assessment(slug)
    graph = compute_decision_tree(assessment["config"], assessment["questions"], assessment["answers"])
    diagram = build_decision_tree_mermaid(graph, assessment["answers"])

    is_valid, error_msg = validate_decision_tree_flowchart(diagram)
    if not is_valid:
        logger.warning("Diagram validation failed: %s", error_msg)

    if output:
        write_mermaid_artifact(str(output), diagram)
        print(f"Mermaid diagram saved to: {output.resolve()}")
    else:
        print(diagram)
    return EXIT_OK


def _run_score(
    loader: AssessmentLoader,
    slug: str,
    *,
    answers_file: Path,
    max_routing_steps: int,
    watch: bool,
) -> int:
    assessment = loader.load_assessment(slug)
    submitted = _load_submitted_answers(answers_file)

    state = score_submission(assessment, submitted, max_routing_steps=max_routing_steps)

    if watch:
        _print_trace(state.get("events", []) or [])

    if state.get("error"):
        print(f"ERROR: {state['error']}")
        return EXIT_UNRESOLVED

    result: dict[str, Any] = {"bucketKey": state.get("bucket_key")}
    if state.get("total_points") is not None:
        result["totalPoints"] = state["total_points"]
    print(json.dumps(result))
    return EXIT_OK


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="assessment-engine",
        description="Analyze assessment decision trees and score submissions.",
    )
    parser.add_argument(
        "--assessments-dir",
        type=Path,
        default=Path(os.getenv("ASSESSMENTS_DIR", "assessments")),
        help="Directory holding <slug>.json assessment files (default: $ASSESSMENTS_DIR or ./assessments).",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=os.getenv("ASSESSMENT_LOG_LEVEL", "INFO").upper(),
        help="Logging level (default: $ASSESSMENT_LOG_LEVEL or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser("analyze", help="Report entry, reachability, cycles and orphans.")
    analyze_parser.add_argument("slug", help="Assessment slug.")
    analyze_parser.add_argument("--json", action="store_true", help="Print the full graph as JSON.")
    analyze_parser.add_argument("--strict", action="store_true", help="Exit 1 if any warning is found.")

    diagram_parser = subparsers.add_parser("diagram", help="Render the decision tree as a Mermaid flowchart.")
    diagram_parser.add_argument("slug", help="Assessment slug.")
    diagram_parser.add_argument("--output", type=Path, default=None, help="Write the diagram to this file.")

    score_parser = subparsers.add_parser("score", help="Resolve the result bucket for a submission.")
    score_parser.add_argument("slug", help="Assessment slug.")
    score_parser.add_argument(
        "--answers",
        type=Path,
        required=True,
        help="JSON file with [{questionId, answerId}, ...].",
    )
    score_parser.add_argument(
        "--max-routing-steps",
        type=int,
        default=_env_int("ASSESSMENT_MAX_ROUTING_STEPS", DEFAULT_MAX_ROUTING_STEPS),
        help="Hard step limit for decision-tree routing.",
    )
    score_parser.add_argument(
        "--watch",
        action="store_true",
        help="Print pipeline trace events.",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args(argv)

    configure_logging(getattr(logging, args.log_level, logging.INFO))

    loader = AssessmentLoader(args.assessments_dir)

    try:
        if args.command == "analyze":
            return _run_analyze(loader, args.slug, as_json=args.json, strict=args.strict)
        if args.command == "diagram":
            return _run_diagram(loader, args.slug, output=args.output)
        return _run_score(
            loader,
            args.slug,
            answers_file=args.answers,
            max_routing_steps=args.max_routing_steps,
            watch=args.watch,
        )
    except (AssessmentEngineError, OSError, json.JSONDecodeError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_LOAD_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
