"""
Assessment record shapes and submission pipeline state.

Records keep the camelCase field names used by the storage layer and the
assessment JSON files, so rows can be passed through without mapping.
"""

from typing import Annotated, Any, Optional

from typing_extensions import NotRequired, TypedDict


POINTS_BASED = "points-based"
DECISION_TREE = "decision-tree"

# The admin form stores "points" for points-based assessments.
SCORING_METHOD_ALIASES = {
    "points": POINTS_BASED,
    POINTS_BASED: POINTS_BASED,
    DECISION_TREE: DECISION_TREE,
}

DEFAULT_MAX_ROUTING_STEPS = 100


def add_events(existing: list[dict[str, Any]] | None, new: list[dict[str, Any]] | None) -> list[dict[str, Any]]:
    """
    Reducer for trace/event logs.

    LangGraph uses typing.Annotated reducers to merge state updates across nodes.
    """
    return (existing or []) + (new or [])


class Question(TypedDict):
    id: str
    questionText: str
    order: int
    conditionalLogic: NotRequired[Optional[str]]


class Answer(TypedDict):
    id: str
    questionId: str
    answerText: str
    answerValue: str
    order: NotRequired[int]
    points: NotRequired[Optional[int]]


class ResultBucket(TypedDict):
    bucketKey: str
    bucketName: NotRequired[str]
    order: int
    minScore: NotRequired[Optional[int]]
    maxScore: NotRequired[Optional[int]]


class AssessmentConfig(TypedDict, total=False):
    id: str
    title: str
    slug: str
    scoringMethod: str
    entryQuestionId: Optional[str]


class SubmittedAnswer(TypedDict):
    """One selection from the frontend submission."""
    questionId: str
    answerId: str


class AssessmentDefinition(TypedDict):
    """Everything needed to analyze or score one assessment."""
    config: AssessmentConfig
    questions: list[Question]
    answers: list[Answer]
    buckets: list[ResultBucket]


class SubmissionState(TypedDict):
    """
    State for the submission pipeline.

    Fields:
    - assessment: The assessment snapshot the submission is scored against
    - submitted_answers: User selections
    - scoring_method: Normalized scoring method (set by validation)
    - entry_question_id: Resolved entry question (decision-tree only)
    - total_points: Score for points-based assessments
    - bucket_key: Final result bucket, None while undetermined
    - events: Append-only trace log
    - error: User-facing error (if any)
    - max_routing_steps: Step cap for the decision-tree walk
    """

    assessment: AssessmentDefinition
    submitted_answers: list[SubmittedAnswer]

    scoring_method: Optional[str]
    entry_question_id: Optional[str]

    total_points: Optional[int]
    bucket_key: Optional[str]

    # Trace / observability (append-only event log)
    events: Annotated[list[dict[str, Any]], add_events]

    error: Optional[str]

    max_routing_steps: int


def normalize_scoring_method(scoring_method: Optional[str]) -> Optional[str]:
    """Map a stored scoring method onto POINTS_BASED / DECISION_TREE, or None if unknown."""
    if not scoring_method:
        return None
    return SCORING_METHOD_ALIASES.get(scoring_method.strip().lower())


def create_initial_state(
    assessment: AssessmentDefinition,
    submitted_answers: list[SubmittedAnswer],
    max_routing_steps: int = DEFAULT_MAX_ROUTING_STEPS
) -> SubmissionState:
    """
    Create initial state for scoring one submission.

    Args:
        assessment: Assessment snapshot (config, questions, answers, buckets)
        submitted_answers: User selections
        max_routing_steps: Cycle protection limit for decision-tree routing

    Returns:
        Initial SubmissionState
    """
    return {
        "assessment": assessment,
        "submitted_answers": list(submitted_answers),
        "scoring_method": None,
        "entry_question_id": None,
        "total_points": None,
        "bucket_key": None,
        "events": [],
        "error": None,
        "max_routing_steps": max_routing_steps,
    }
