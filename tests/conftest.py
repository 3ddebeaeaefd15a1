"""
Shared test fixtures for unit and integration tests.
"""

import json
from pathlib import Path
from typing import Any, Dict, List

import pytest


ASSESSMENTS_DIR = Path(__file__).resolve().parent.parent / "assessments"


def make_question(qid: str, order: int, text: str = "", conditional_logic: Any = None) -> Dict[str, Any]:
    return {
        "id": qid,
        "questionText": text or f"Question {qid}",
        "order": order,
        "conditionalLogic": conditional_logic,
    }


def make_answer(
    aid: str,
    qid: str,
    answer_value: Any = "",
    points: Any = None,
    text: str = "",
) -> Dict[str, Any]:
    if isinstance(answer_value, dict):
        answer_value = json.dumps(answer_value)
    return {
        "id": aid,
        "questionId": qid,
        "answerText": text or f"Answer {aid}",
        "answerValue": answer_value,
        "order": 0,
        "points": points,
    }


@pytest.fixture
def assessments_dir() -> Path:
    """Directory with the sample assessment files."""
    return ASSESSMENTS_DIR


@pytest.fixture
def decision_config() -> Dict[str, Any]:
    return {
        "id": "test-config",
        "title": "Test Assessment",
        "slug": "test-assessment",
        "scoringMethod": "decision-tree",
        "entryQuestionId": "q1",
    }


@pytest.fixture
def two_questions() -> List[Dict[str, Any]]:
    return [make_question("q1", 0), make_question("q2", 1)]


@pytest.fixture
def routed_answers() -> List[Dict[str, Any]]:
    """q1 -> q2 -> result-a / result-b."""
    return [
        make_answer("a1", "q1", {"nextQuestionId": "q2"}, text="Yes"),
        make_answer("a2", "q2", {"resultBucketKey": "result-a"}, text="Option A"),
        make_answer("a3", "q2", {"resultBucketKey": "result-b"}, text="Option B"),
    ]


@pytest.fixture
def points_answers() -> List[Dict[str, Any]]:
    return [
        make_answer("a1", "q1", points=1, text="Low"),
        make_answer("a2", "q1", points=5, text="Medium"),
        make_answer("a3", "q1", points=10, text="High"),
    ]


@pytest.fixture
def score_buckets() -> List[Dict[str, Any]]:
    """[0,3] low, [4,7] medium, [8,inf) high."""
    return [
        {"bucketKey": "low", "bucketName": "Low", "order": 0, "minScore": 0, "maxScore": 3},
        {"bucketKey": "medium", "bucketName": "Medium", "order": 1, "minScore": 4, "maxScore": 7},
        {"bucketKey": "high", "bucketName": "High", "order": 2, "minScore": 8, "maxScore": None},
    ]
