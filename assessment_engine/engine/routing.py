"""
Routing codec for answer values and conditional display logic.

Answers store their routing as a JSON string:
- {"nextQuestionId": "..."}  advance to another question
- {"resultBucketKey": "..."} terminate at a result bucket

Questions store display conditions as {"questionId": "...", "answerId": "..."}.

Readers here are lenient (None on anything malformed) because they feed the
admin graph and the scoring runtime. validate_answer_value() is the strict
check for the write path.
"""

import json
from dataclasses import dataclass
from typing import Any, Optional, Union

from assessment_engine.engine.errors import RoutingError
from assessment_engine.state.assessment_state import Answer, Question, ResultBucket


LABEL_LIMIT = 30


@dataclass(frozen=True)
class Advance:
    """Continue to another question."""
    next_question_id: str


@dataclass(frozen=True)
class Terminate:
    """Finish at a result bucket."""
    bucket_key: str


@dataclass(frozen=True)
class DisplayCondition:
    """Show a question only if answer_id was selected for question_id."""
    question_id: str
    answer_id: str


RoutingAction = Union[Advance, Terminate]


def load_json_object(raw: Optional[str]) -> Optional[dict[str, Any]]:
    """Decode a JSON object string; None for empty, invalid or non-object input."""
    if not raw:
        return None
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(value, dict):
        return None
    return value


def _non_empty_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None


def parse_routing(answer_value: Optional[str]) -> Optional[RoutingAction]:
    """
    Parse an answer's routing JSON.

    resultBucketKey is checked first, so an answer carrying both fields
    terminates.

    Returns:
        Terminate, Advance, or None if the value is malformed or has neither field
    """
    routing = load_json_object(answer_value)
    if routing is None:
        return None

    bucket_key = _non_empty_str(routing.get("resultBucketKey"))
    if bucket_key:
        return Terminate(bucket_key)

    next_question_id = _non_empty_str(routing.get("nextQuestionId"))
    if next_question_id:
        return Advance(next_question_id)

    return None


def parse_conditional_logic(raw: Optional[str]) -> Optional[DisplayCondition]:
    """Parse a question's conditional display logic, or None if absent/malformed."""
    logic = load_json_object(raw)
    if logic is None:
        return None

    question_id = _non_empty_str(logic.get("questionId"))
    answer_id = _non_empty_str(logic.get("answerId"))
    if not question_id or not answer_id:
        return None

    return DisplayCondition(question_id, answer_id)


def encode_routing(action: RoutingAction) -> str:
    """Serialize a routing action into the answerValue JSON string."""
    if isinstance(action, Terminate):
        return json.dumps({"resultBucketKey": action.bucket_key})
    return json.dumps({"nextQuestionId": action.next_question_id})


def validate_answer_value(raw: str) -> RoutingAction:
    """
    Strictly validate an answerValue before it is stored.

    Args:
        raw: answerValue JSON string

    Returns:
        The parsed routing action

    Raises:
        RoutingError: If the JSON is invalid, not an object, names both or
            neither routing field, or a field is not a non-empty string
    """
    try:
        routing = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise RoutingError(f"answerValue is not valid JSON: {e}")

    if not isinstance(routing, dict):
        raise RoutingError("answerValue must be a JSON object")

    has_next = "nextQuestionId" in routing
    has_bucket = "resultBucketKey" in routing

    if has_next and has_bucket:
        raise RoutingError("answerValue cannot set both nextQuestionId and resultBucketKey")
    if not has_next and not has_bucket:
        raise RoutingError("answerValue must set nextQuestionId or resultBucketKey")

    field_name = "resultBucketKey" if has_bucket else "nextQuestionId"
    value = _non_empty_str(routing[field_name])
    if value is None:
        raise RoutingError(f"{field_name} must be a non-empty string")

    if has_bucket:
        return Terminate(value)
    return Advance(value)


def truncate_label(text: Optional[str], limit: int = LABEL_LIMIT) -> str:
    """Cut text to limit characters, adding an ellipsis if it was longer."""
    text = text or ""
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def routing_label(
    answer: Answer,
    questions: list[Question],
    buckets: list[ResultBucket]
) -> str:
    """
    Describe where an answer routes, for the admin flow builder.

    Examples: "→ Question 2", "→ Result: High Growth", "→ Invalid routing"
    """
    routing = load_json_object(answer.get("answerValue"))
    if routing is None:
        if answer.get("answerValue"):
            return "→ Invalid routing"
        return "→ No routing"

    next_question_id = routing.get("nextQuestionId")
    if next_question_id:
        target = next((q for q in questions if q["id"] == next_question_id), None)
        return f"→ Question {target['order']}" if target else "→ Unknown Question"

    bucket_key = routing.get("resultBucketKey")
    if bucket_key:
        bucket = next((b for b in buckets if b["bucketKey"] == bucket_key), None)
        if bucket:
            return f"→ Result: {bucket.get('bucketName') or bucket_key}"
        return "→ Unknown Result"

    return "→ No routing"
