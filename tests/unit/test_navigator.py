"""
Unit tests for runtime navigation.
"""

from assessment_engine.engine.navigator import (
    NavigationStep,
    is_question_visible,
    next_question_id,
    resolve_entry_question_id,
    sort_questions,
    visible_questions,
)
from conftest import make_answer, make_question


CONDITION_ON_A1 = '{"questionId": "q1", "answerId": "a1"}'


class TestEntryResolution:

    def test_explicit_entry(self):
        questions = [make_question("q1", 0), make_question("q2", 1)]

        assert resolve_entry_question_id({"entryQuestionId": "q2"}, questions) == "q2"

    def test_lowest_order_fallback(self):
        questions = [make_question("q2", 3), make_question("q1", 1)]

        assert resolve_entry_question_id({}, questions) == "q1"
        assert resolve_entry_question_id(None, questions) == "q1"

    def test_no_questions(self):
        assert resolve_entry_question_id({"entryQuestionId": "q1"}, []) is None

    def test_sort_is_stable(self):
        questions = [make_question("b", 1), make_question("a", 1), make_question("c", 0)]

        assert [q["id"] for q in sort_questions(questions)] == ["c", "b", "a"]


class TestVisibility:

    def test_no_condition(self):
        assert is_question_visible(make_question("q1", 0), {}) is True

    def test_condition_met(self):
        question = make_question("q2", 1, conditional_logic=CONDITION_ON_A1)

        assert is_question_visible(question, {"q1": "a1"}) is True

    def test_condition_not_met(self):
        question = make_question("q2", 1, conditional_logic=CONDITION_ON_A1)

        assert is_question_visible(question, {"q1": "a2"}) is False
        assert is_question_visible(question, {}) is False

    def test_unreadable_condition_is_visible(self):
        question = make_question("q2", 1, conditional_logic="{nope")

        assert is_question_visible(question, {}) is True

    def test_visible_questions(self):
        questions = [
            make_question("q1", 0),
            make_question("q2", 1, conditional_logic=CONDITION_ON_A1),
            make_question("q3", 2),
        ]

        assert [q["id"] for q in visible_questions(questions, {"q1": "a2"})] == ["q1", "q3"]


class TestNextQuestion:

    def setup_method(self):
        self.questions = [
            make_question("q1", 0),
            make_question("q2", 1, conditional_logic=CONDITION_ON_A1),
            make_question("q3", 2),
            make_question("q4", 3),
        ]

    def test_terminal_answer_completes(self):
        answers = [make_answer("a1", "q1", {"resultBucketKey": "done"})]

        step = next_question_id("q1", "a1", self.questions, answers, {})

        assert step == NavigationStep(bucket_key="done", complete=True)

    def test_explicit_route(self):
        answers = [make_answer("a1", "q1", {"nextQuestionId": "q4"})]

        step = next_question_id("q1", "a1", self.questions, answers, {})

        assert step.next_question_id == "q4"
        assert step.complete is False

    def test_explicit_route_to_hidden_question_falls_back(self):
        """q2 is only shown for a1, so choosing a5 skips to q3."""
        answers = [make_answer("a5", "q1", {"nextQuestionId": "q2"})]

        step = next_question_id("q1", "a5", self.questions, answers, {})

        assert step.next_question_id == "q3"

    def test_explicit_route_to_visible_conditional(self):
        answers = [make_answer("a1", "q1", {"nextQuestionId": "q2"})]

        step = next_question_id("q1", "a1", self.questions, answers, {})

        assert step.next_question_id == "q2"

    def test_sequential_without_routing(self):
        answers = [make_answer("a3", "q3", points=2)]

        step = next_question_id("q3", "a3", self.questions, answers, {"q1": "a1"})

        assert step.next_question_id == "q4"

    def test_last_question_completes(self):
        answers = [make_answer("a4", "q4", points=1)]

        step = next_question_id("q4", "a4", self.questions, answers, {})

        assert step == NavigationStep(complete=True)

    def test_unknown_answer_stays(self):
        step = next_question_id("q1", "missing", self.questions, [], {})

        assert step == NavigationStep()
