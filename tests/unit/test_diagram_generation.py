"""
Unit tests for decision tree diagram generation.
"""

from assessment_engine.actions.diagram_generation import (
    build_decision_tree_mermaid,
    build_warnings_report,
    validate_decision_tree_flowchart,
    write_mermaid_artifact,
)
from assessment_engine.engine.decision_tree import compute_decision_tree
from conftest import make_answer, make_question


class TestBuildDecisionTreeMermaid:

    def test_flowchart_header_and_nodes(self, decision_config, two_questions, routed_answers):
        graph = compute_decision_tree(decision_config, two_questions, routed_answers)

        diagram = build_decision_tree_mermaid(graph, routed_answers)
        lines = diagram.split("\n")

        assert lines[0] == "flowchart TD"
        assert '    q_q1(["Question q1"])' in lines
        assert '    q_q2["Question q2"]' in lines

    def test_answer_and_bucket_edges(self, decision_config, two_questions, routed_answers):
        graph = compute_decision_tree(decision_config, two_questions, routed_answers)

        diagram = build_decision_tree_mermaid(graph, routed_answers)

        assert '    q_q1 -->|"Yes"| q_q2' in diagram
        assert '    bucket_result_a[["result-a"]]' in diagram
        assert '    q_q2 -->|"Option B"| bucket_result_b' in diagram

    def test_conditional_edge_is_dotted(self):
        questions = [
            make_question("q1", 0),
            make_question("q2", 1, conditional_logic='{"questionId": "q1", "answerId": "a1"}'),
        ]
        answers = [make_answer("a1", "q1", text="Yes")]
        graph = compute_decision_tree({}, questions, answers)

        diagram = build_decision_tree_mermaid(graph, answers)

        assert '    q_q1 -.->|"if: Yes"| q_q2' in diagram

    def test_cycle_links_are_styled(self, decision_config, two_questions):
        answers = [
            make_answer("a1", "q1", {"nextQuestionId": "q2"}),
            make_answer("a2", "q2", {"nextQuestionId": "q1"}),
        ]
        graph = compute_decision_tree(decision_config, two_questions, answers)

        diagram = build_decision_tree_mermaid(graph, answers)

        # answer-a2 is the second link drawn
        assert "    linkStyle 1 stroke:#d33,stroke-width:2px" in diagram

    def test_orphans_are_styled(self, decision_config, two_questions, routed_answers):
        questions = two_questions + [make_question("q3", 2)]
        graph = compute_decision_tree(decision_config, questions, routed_answers)

        diagram = build_decision_tree_mermaid(graph)

        assert "    class q_q3 orphan" in diagram

    def test_quotes_and_odd_ids_are_escaped(self):
        questions = [make_question("q-1.a", 0, text='Is it "ready"?')]
        graph = compute_decision_tree({}, questions, [])

        diagram = build_decision_tree_mermaid(graph)

        assert '    q_q_1_a(["Is it \'ready\'?"])' in diagram

    def test_colliding_ids_stay_distinct(self):
        """a-b and a_b sanitize to the same id but remain separate nodes."""
        questions = [make_question("a-b", 0, text="Dash"), make_question("a_b", 1, text="Underscore")]
        answers = [make_answer("x1", "a-b", {"nextQuestionId": "a_b"}, text="Go")]
        graph = compute_decision_tree({}, questions, answers)

        diagram = build_decision_tree_mermaid(graph, answers)

        assert '    q_a_b(["Dash"])' in diagram
        assert '    q_a_b_2["Underscore"]' in diagram
        assert '    q_a_b -->|"Go"| q_a_b_2' in diagram
        assert validate_decision_tree_flowchart(diagram) == (True, None)

    def test_generated_diagram_validates(self, decision_config, two_questions, routed_answers):
        graph = compute_decision_tree(decision_config, two_questions, routed_answers)

        is_valid, error = validate_decision_tree_flowchart(build_decision_tree_mermaid(graph, routed_answers))

        assert is_valid is True
        assert error is None


class TestValidateFlowchart:

    def test_empty(self):
        assert validate_decision_tree_flowchart("") == (False, "Empty Mermaid diagram")

    def test_missing_header(self):
        is_valid, error = validate_decision_tree_flowchart("graph TD\n    a --> b")

        assert is_valid is False
        assert "flowchart" in error

    def test_undeclared_endpoint(self):
        diagram = 'flowchart TD\n    q_a["A"]\n    q_a --> q_b'

        is_valid, error = validate_decision_tree_flowchart(diagram)

        assert is_valid is False
        assert "q_b" in error


class TestWarningsReport:

    def test_healthy_tree(self, decision_config, two_questions, routed_answers):
        graph = compute_decision_tree(decision_config, two_questions, routed_answers)

        assert build_warnings_report(graph) == []

    def test_reports_cycles_orphans_and_dropped_routing(self, decision_config):
        questions = [make_question(f"q{i}", i) for i in range(1, 4)]
        answers = [
            make_answer("a1", "q1", {"nextQuestionId": "q2"}),
            make_answer("a2", "q2", {"nextQuestionId": "q1"}),
            make_answer("a3", "q2", {"nextQuestionId": "ghost"}),
        ]
        graph = compute_decision_tree(decision_config, questions, answers)

        report = build_warnings_report(graph)

        assert any(line.startswith("Cycle: q2 -> q1") for line in report)
        assert any(line.startswith("Orphaned question: q3") for line in report)
        assert any("ghost" in line for line in report)


def test_write_mermaid_artifact(tmp_path):
    target = tmp_path / "artifacts" / "tree.mmd"

    write_mermaid_artifact(str(target), "flowchart TD")

    assert target.read_text(encoding="utf-8") == "flowchart TD"
