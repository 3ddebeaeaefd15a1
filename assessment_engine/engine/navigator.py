"""
Runtime navigation through an assessment: entry resolution, conditional
visibility and next-question selection.

Deterministic only; no I/O.
"""

from dataclasses import dataclass
from typing import Optional

from assessment_engine.engine.routing import Advance, Terminate, parse_conditional_logic, parse_routing
from assessment_engine.state.assessment_state import Answer, AssessmentConfig, Question


@dataclass(frozen=True)
class NavigationStep:
    """Where the runtime goes after an answer is selected."""
    next_question_id: Optional[str] = None
    bucket_key: Optional[str] = None
    complete: bool = False


def sort_questions(questions: list[Question]) -> list[Question]:
    """Questions by order; ties keep their input order."""
    return sorted(questions, key=lambda q: q["order"])


def resolve_entry_question_id(
    config: Optional[AssessmentConfig],
    questions: list[Question]
) -> Optional[str]:
    """
    Resolve the question an assessment starts from.

    Uses config.entryQuestionId when it names an existing question, otherwise
    the question with the lowest order.

    Returns:
        Question id, or None for an assessment without questions
    """
    if not questions:
        return None

    entry_question_id = (config or {}).get("entryQuestionId")
    if entry_question_id and any(q["id"] == entry_question_id for q in questions):
        return entry_question_id

    return sort_questions(questions)[0]["id"]


def is_question_visible(question: Question, user_answers: dict[str, str]) -> bool:
    """
    Check a question's display condition against the selections so far.

    Questions without (or with unreadable) conditional logic are always shown.

    Args:
        question: Question to check
        user_answers: questionId -> selected answerId
    """
    if not question.get("conditionalLogic"):
        return True

    condition = parse_conditional_logic(question["conditionalLogic"])
    if condition is None:
        return True

    return user_answers.get(condition.question_id) == condition.answer_id


def visible_questions(questions: list[Question], user_answers: dict[str, str]) -> list[Question]:
    return [q for q in sort_questions(questions) if is_question_visible(q, user_answers)]


def _next_visible_after(
    question_id: str,
    ordered: list[Question],
    user_answers: dict[str, str]
) -> Optional[str]:
    current_index = next((i for i, q in enumerate(ordered) if q["id"] == question_id), -1)
    for question in ordered[current_index + 1:]:
        if is_question_visible(question, user_answers):
            return question["id"]
    return None


def next_question_id(
    question_id: str,
    answer_id: str,
    questions: list[Question],
    all_answers: list[Answer],
    user_answers: dict[str, str]
) -> NavigationStep:
    """
    Determine the next step after answer_id is selected for question_id.

    - Terminal routing completes the assessment with its bucket
    - Explicit nextQuestionId is followed if that question exists and is visible
    - Otherwise the next visible question in order is used
    - With no question left the assessment is complete

    Args:
        question_id: Question just answered
        answer_id: Selected answer
        questions: All questions in the assessment
        all_answers: All answer definitions
        user_answers: questionId -> answerId selections, excluding this one

    Returns:
        NavigationStep
    """
    selections = dict(user_answers)
    selections[question_id] = answer_id

    answer = next((a for a in all_answers if a["id"] == answer_id), None)
    if answer is None:
        return NavigationStep()

    ordered = sort_questions(questions)
    routing = parse_routing(answer.get("answerValue"))

    if isinstance(routing, Terminate):
        return NavigationStep(bucket_key=routing.bucket_key, complete=True)

    if isinstance(routing, Advance):
        target = next((q for q in ordered if q["id"] == routing.next_question_id), None)
        if target is not None and is_question_visible(target, selections):
            return NavigationStep(next_question_id=target["id"])

    following = _next_visible_after(question_id, ordered, selections)
    if following is None:
        return NavigationStep(complete=True)
    return NavigationStep(next_question_id=following)
