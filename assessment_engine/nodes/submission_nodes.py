"""
LangGraph node implementations for the submission pipeline.

- Single responsibility per node
- Deterministic, no I/O
- Failures land in state["error"], never raised
"""

from typing import Any

from assessment_engine.engine.navigator import resolve_entry_question_id
from assessment_engine.engine.scoring import (
    calculate_decision_tree_bucket,
    calculate_points_based_bucket,
    calculate_total_points,
)
from assessment_engine.state.assessment_state import (
    DECISION_TREE,
    DEFAULT_MAX_ROUTING_STEPS,
    POINTS_BASED,
    SubmissionState,
    normalize_scoring_method,
)


UNDETERMINED_RESULT_ERROR = "Assessment incomplete or misconfigured"


def _evt(kind: str, **fields: Any) -> dict[str, Any]:
    """Create a structured trace event for observability."""
    evt: dict[str, Any] = {"kind": kind}
    evt.update(fields)
    return evt


def validate_submission_node(state: SubmissionState) -> dict[str, Any]:
    """
    Check the submission can be scored and normalize the scoring method.

    Args:
        state: Current submission state

    Returns:
        Updates to state
    """
    try:
        config = state["assessment"]["config"]
        submitted = state.get("submitted_answers") or []
        raw_method = config.get("scoringMethod")
        scoring_method = normalize_scoring_method(raw_method)

        if scoring_method is None:
            return {
                "error": f"Unknown scoring method: {raw_method!r}",
                "events": [_evt("submission_rejected", reason="unknown_scoring_method", scoring_method=raw_method)],
            }

        if not submitted:
            return {
                "scoring_method": scoring_method,
                "error": "No answers submitted",
                "events": [_evt("submission_rejected", reason="no_answers")],
            }

        malformed = [a for a in submitted if not a.get("questionId") or not a.get("answerId")]
        if malformed:
            return {
                "scoring_method": scoring_method,
                "error": f"{len(malformed)} submitted answer(s) missing questionId or answerId",
                "events": [_evt("submission_rejected", reason="malformed_answers", count=len(malformed))],
            }

        return {
            "scoring_method": scoring_method,
            "events": [
                _evt(
                    "submission_validated",
                    scoring_method=scoring_method,
                    answer_count=len(submitted),
                )
            ],
        }

    except Exception as e:
        return {
            "error": f"Failed to validate submission: {str(e)}",
            "events": [_evt("node_failed", node="validate_submission", detail=str(e))],
        }


def score_submission_node(state: SubmissionState) -> dict[str, Any]:
    """
    Resolve the result bucket with the assessment's scoring method.

    Args:
        state: Current submission state

    Returns:
        Updates to state
    """
    try:
        assessment = state["assessment"]
        submitted = state["submitted_answers"]
        scoring_method = state.get("scoring_method")

        if scoring_method == POINTS_BASED:
            total_points = calculate_total_points(submitted, assessment["answers"])
            bucket_key = calculate_points_based_bucket(submitted, assessment["answers"], assessment["buckets"])
            return {
                "total_points": total_points,
                "bucket_key": bucket_key,
                "events": [
                    _evt(
                        "submission_scored",
                        scoring_method=scoring_method,
                        total_points=total_points,
                        bucket_key=bucket_key,
                    )
                ],
            }

        if scoring_method == DECISION_TREE:
            entry_question_id = resolve_entry_question_id(assessment["config"], assessment["questions"])
            bucket_key = None
            if entry_question_id is not None:
                bucket_key = calculate_decision_tree_bucket(
                    submitted,
                    assessment["questions"],
                    assessment["answers"],
                    entry_question_id,
                    max_steps=state.get("max_routing_steps", DEFAULT_MAX_ROUTING_STEPS),
                )
            return {
                "entry_question_id": entry_question_id,
                "bucket_key": bucket_key,
                "events": [
                    _evt(
                        "submission_scored",
                        scoring_method=scoring_method,
                        entry_question_id=entry_question_id,
                        bucket_key=bucket_key,
                    )
                ],
            }

        return {
            "error": f"Unknown scoring method: {scoring_method!r}",
            "events": [_evt("node_failed", node="score_submission", detail="unknown_scoring_method")],
        }

    except Exception as e:
        return {
            "error": f"Failed to score submission: {str(e)}",
            "events": [_evt("node_failed", node="score_submission", detail=str(e))],
        }


def finalize_result_node(state: SubmissionState) -> dict[str, Any]:
    """
    Turn an undetermined bucket into a user-facing error.

    Args:
        state: Current submission state

    Returns:
        Updates to state
    """
    bucket_key = state.get("bucket_key")

    if bucket_key is None:
        return {
            "error": UNDETERMINED_RESULT_ERROR,
            "events": [_evt("result_undetermined", scoring_method=state.get("scoring_method"))],
        }

    return {
        "events": [_evt("result_resolved", bucket_key=bucket_key)],
    }


def should_score(state: SubmissionState) -> str:
    """
    Routing function: score a valid submission or stop.

    Args:
        state: Current submission state

    Returns:
        "score" or "end"
    """
    if state.get("error"):
        return "end"
    return "score"
