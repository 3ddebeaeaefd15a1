"""
Result bucket resolution for completed assessment submissions.

Two scoring methods:
- points-based: sum answer points, first bucket (by order) whose range holds the total
- decision-tree: follow answer routing from the entry question to a result bucket

Every failure path returns None; callers decide how to report an
undetermined result.
"""

import logging
from typing import Optional

from assessment_engine.engine.navigator import resolve_entry_question_id
from assessment_engine.engine.routing import Advance, Terminate, load_json_object, parse_routing
from assessment_engine.state.assessment_state import (
    DECISION_TREE,
    DEFAULT_MAX_ROUTING_STEPS,
    POINTS_BASED,
    Answer,
    AssessmentConfig,
    Question,
    ResultBucket,
    SubmittedAnswer,
    normalize_scoring_method,
)


logger = logging.getLogger(__name__)


def calculate_total_points(answers: list[SubmittedAnswer], all_answers: list[Answer]) -> int:
    """
    Sum the points of the submitted answers.

    Unknown answer ids and answers without points contribute 0.
    """
    # First definition wins when answer ids repeat
    points_by_answer: dict[str, Optional[int]] = {}
    for a in all_answers:
        points_by_answer.setdefault(a["id"], a.get("points"))

    total = 0
    for submitted in answers:
        points = points_by_answer.get(submitted["answerId"])
        if points is not None:
            total += points
    return total


def bucket_matches(bucket: ResultBucket, total_points: int) -> bool:
    """
    Check a total against a bucket's score range.

    Both bounds are inclusive; a missing bound is open. A bucket with no
    bounds at all never matches.
    """
    min_score = bucket.get("minScore")
    max_score = bucket.get("maxScore")

    if min_score is not None and max_score is not None:
        return min_score <= total_points <= max_score
    if min_score is not None:
        return total_points >= min_score
    if max_score is not None:
        return total_points <= max_score
    return False


def calculate_points_based_bucket(
    answers: list[SubmittedAnswer],
    all_answers: list[Answer],
    buckets: list[ResultBucket]
) -> Optional[str]:
    """
    Calculate points-based bucket assignment.

    Args:
        answers: Submitted answers (questionId, answerId)
        all_answers: All answer options with their points
        buckets: Result buckets with minScore/maxScore ranges

    Returns:
        Key of the first bucket in order whose range contains the total, or None
    """
    total_points = calculate_total_points(answers, all_answers)
    logger.info("Points-based scoring: total points %d", total_points)

    for bucket in sorted(buckets, key=lambda b: b["order"]):
        if bucket_matches(bucket, total_points):
            logger.info(
                "Points-based scoring: matched bucket %s (%s..%s)",
                bucket["bucketKey"],
                bucket.get("minScore"),
                bucket.get("maxScore"),
            )
            return bucket["bucketKey"]

    logger.warning("Points-based scoring: no bucket matched score %d", total_points)
    return None


def calculate_decision_tree_bucket(
    answers: list[SubmittedAnswer],
    questions: list[Question],
    all_answers: list[Answer],
    entry_question_id: str,
    max_steps: int = DEFAULT_MAX_ROUTING_STEPS
) -> Optional[str]:
    """
    Calculate decision-tree bucket assignment.

    Walks answer routing from entry_question_id until an answer names a
    resultBucketKey. resultBucketKey wins over nextQuestionId when both are set.

    Args:
        answers: Submitted answers (questionId, answerId)
        questions: All questions in the assessment
        all_answers: All answer options with their routing JSON
        entry_question_id: First question of the walk
        max_steps: Hard cap on routing steps

    Returns:
        Final bucket key, or None if the path is incomplete, malformed or too long
    """
    logger.debug("Decision-tree scoring: starting from question %s", entry_question_id)

    # questions is not consulted: routing targets are looked up through the submission.
    # A re-answered question keeps its latest selection; answer ids keep their first definition
    selected_by_question = {a["questionId"]: a["answerId"] for a in answers}
    answers_by_id: dict[str, Answer] = {}
    for a in all_answers:
        answers_by_id.setdefault(a["id"], a)

    current_question_id = entry_question_id
    steps = 0

    while steps < max_steps:
        steps += 1

        selected_answer_id = selected_by_question.get(current_question_id)
        if not selected_answer_id:
            logger.warning("Decision-tree scoring: no answer for question %s", current_question_id)
            return None

        answer = answers_by_id.get(selected_answer_id)
        if answer is None:
            logger.warning("Decision-tree scoring: answer %s not found", selected_answer_id)
            return None

        if load_json_object(answer.get("answerValue")) is None:
            logger.warning(
                "Decision-tree scoring: unreadable answerValue for answer %s", selected_answer_id
            )
            return None

        routing = parse_routing(answer["answerValue"])

        if isinstance(routing, Terminate):
            logger.info("Decision-tree scoring: reached bucket %s", routing.bucket_key)
            return routing.bucket_key

        if isinstance(routing, Advance):
            logger.debug("Decision-tree scoring: moving to question %s", routing.next_question_id)
            current_question_id = routing.next_question_id
            continue

        logger.warning(
            "Decision-tree scoring: answer %s has no nextQuestionId or resultBucketKey",
            selected_answer_id,
        )
        return None

    logger.error("Decision-tree scoring: max steps (%d) reached, possible routing loop", max_steps)
    return None


def resolve_bucket(
    config: AssessmentConfig,
    questions: list[Question],
    all_answers: list[Answer],
    buckets: list[ResultBucket],
    answers: list[SubmittedAnswer],
    max_steps: int = DEFAULT_MAX_ROUTING_STEPS
) -> Optional[str]:
    """
    Resolve a submission with the assessment's configured scoring method.

    Returns:
        Bucket key, or None for an undetermined result or unknown scoring method
    """
    scoring_method = normalize_scoring_method(config.get("scoringMethod"))

    if scoring_method == POINTS_BASED:
        return calculate_points_based_bucket(answers, all_answers, buckets)

    if scoring_method == DECISION_TREE:
        entry_question_id = resolve_entry_question_id(config, questions)
        if entry_question_id is None:
            logger.warning("Decision-tree scoring: assessment has no questions")
            return None
        return calculate_decision_tree_bucket(
            answers, questions, all_answers, entry_question_id, max_steps=max_steps
        )

    logger.warning("Unknown scoring method: %r", config.get("scoringMethod"))
    return None
