"""
Decision tree analysis for the admin visualization.

Builds a directed graph of questions, with edges from answer routing and from
conditional display logic, then marks reachable, orphaned and cyclic parts.

Malformed routing never raises: the offending edge is left out and a warning
is recorded so partially configured assessments still render.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Optional

from assessment_engine.engine.navigator import resolve_entry_question_id
from assessment_engine.engine.routing import load_json_object, parse_conditional_logic, truncate_label
from assessment_engine.state.assessment_state import Answer, AssessmentConfig, Question


logger = logging.getLogger(__name__)

ANSWER_EDGE = "answer"
CONDITIONAL_EDGE = "conditional"

WHITE, GRAY, BLACK = 0, 1, 2


@dataclass
class DecisionTreeNode:
    id: str
    question_text: str
    order: int
    is_entry: bool = False
    is_orphaned: bool = False
    is_reachable: bool = False
    has_conditional_logic: bool = False


@dataclass
class DecisionTreeEdge:
    id: str
    from_question_id: str
    to_question_id: str
    kind: str
    label: str
    answer_id: Optional[str] = None
    is_cycle: bool = False


@dataclass
class DecisionTreeGraph:
    nodes: dict[str, DecisionTreeNode] = field(default_factory=dict)
    edges: list[DecisionTreeEdge] = field(default_factory=list)
    reachable_nodes: set[str] = field(default_factory=set)
    cycles: list[DecisionTreeEdge] = field(default_factory=list)
    orphaned_nodes: list[DecisionTreeNode] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    entry_question_id: Optional[str] = None

    @property
    def entry_node(self) -> Optional[DecisionTreeNode]:
        if self.entry_question_id is None:
            return None
        return self.nodes.get(self.entry_question_id)

    def to_dict(self) -> dict:
        """JSON-friendly summary for the admin API."""
        return {
            "entryQuestionId": self.entry_question_id,
            "nodes": [
                {
                    "id": n.id,
                    "questionText": n.question_text,
                    "order": n.order,
                    "isEntry": n.is_entry,
                    "isReachable": n.is_reachable,
                    "isOrphaned": n.is_orphaned,
                    "hasConditionalLogic": n.has_conditional_logic,
                }
                for n in self.nodes.values()
            ],
            "edges": [
                {
                    "id": e.id,
                    "fromQuestionId": e.from_question_id,
                    "toQuestionId": e.to_question_id,
                    "answerId": e.answer_id,
                    "type": e.kind,
                    "label": e.label,
                    "isCycle": e.is_cycle,
                }
                for e in self.edges
            ],
            "reachableNodes": sorted(self.reachable_nodes),
            "cycles": [e.id for e in self.cycles],
            "orphanedNodes": [n.id for n in self.orphaned_nodes],
            "warnings": list(self.warnings),
        }


def _build_answer_edges(
    answers: list[Answer],
    question_ids: set[str],
    warnings: list[str]
) -> list[DecisionTreeEdge]:
    edges: list[DecisionTreeEdge] = []

    for answer in answers:
        answer_value = answer.get("answerValue")
        routing = load_json_object(answer_value)

        if routing is None:
            # Points-based answers legitimately carry an empty answerValue
            if answer_value:
                warnings.append(f"Answer {answer['id']} has unreadable routing: {answer_value!r}")
            continue

        next_question_id = routing.get("nextQuestionId")
        if not next_question_id:
            continue

        if not isinstance(next_question_id, str):
            warnings.append(
                f"Answer {answer['id']} has a non-string nextQuestionId: {next_question_id!r}"
            )
            continue

        if next_question_id not in question_ids:
            warnings.append(
                f"Answer {answer['id']} routes to unknown question {next_question_id}"
            )
            continue

        edges.append(
            DecisionTreeEdge(
                id=f"answer-{answer['id']}",
                from_question_id=answer["questionId"],
                to_question_id=next_question_id,
                kind=ANSWER_EDGE,
                label=truncate_label(answer.get("answerText")),
                answer_id=answer["id"],
            )
        )

    return edges


def _build_conditional_edges(
    questions: list[Question],
    answers: list[Answer],
    question_ids: set[str],
    warnings: list[str]
) -> list[DecisionTreeEdge]:
    edges: list[DecisionTreeEdge] = []
    answers_by_id: dict[str, Answer] = {}
    for a in answers:
        answers_by_id.setdefault(a["id"], a)

    for question in questions:
        raw = question.get("conditionalLogic")
        if not raw:
            continue

        condition = parse_conditional_logic(raw)
        if condition is None:
            warnings.append(f"Question {question['id']} has unreadable conditional logic: {raw!r}")
            continue

        if condition.question_id not in question_ids:
            warnings.append(
                f"Question {question['id']} depends on unknown question {condition.question_id}"
            )
            continue

        answer = answers_by_id.get(condition.answer_id)
        label = truncate_label(answer.get("answerText")) if answer else "condition"

        edges.append(
            DecisionTreeEdge(
                id=f"conditional-{question['id']}",
                from_question_id=condition.question_id,
                to_question_id=question["id"],
                kind=CONDITIONAL_EDGE,
                label=f"if: {label}",
                answer_id=condition.answer_id,
            )
        )

    return edges


def _find_reachable(entry_question_id: str, adjacency: dict[str, list[str]]) -> set[str]:
    reachable: set[str] = set()
    stack = [entry_question_id]

    while stack:
        node_id = stack.pop()
        if node_id in reachable:
            continue
        reachable.add(node_id)
        # Reverse so neighbors are visited in edge order
        stack.extend(reversed(adjacency.get(node_id, [])))

    return reachable


def _find_back_edges(
    question_ids: list[str],
    adjacency: dict[str, list[str]]
) -> list[tuple[str, str]]:
    """
    Three-color DFS over every node.

    Iterative so long question chains do not hit the recursion limit.

    Returns:
        (from, to) pairs whose target was on the DFS stack when reached
    """
    colors = {qid: WHITE for qid in question_ids}
    back_edges: list[tuple[str, str]] = []

    for start in question_ids:
        if colors[start] != WHITE:
            continue

        colors[start] = GRAY
        stack = [(start, iter(adjacency.get(start, [])))]

        while stack:
            node_id, neighbors = stack[-1]
            neighbor = next(neighbors, None)

            if neighbor is None:
                colors[node_id] = BLACK
                stack.pop()
                continue

            color = colors.get(neighbor, WHITE)
            if color == GRAY:
                back_edges.append((node_id, neighbor))
            elif color == WHITE:
                colors[neighbor] = GRAY
                stack.append((neighbor, iter(adjacency.get(neighbor, []))))

    return back_edges


def compute_decision_tree(
    config: Optional[AssessmentConfig],
    questions: list[Question],
    answers: list[Answer]
) -> DecisionTreeGraph:
    """
    Build and analyze the question graph of an assessment.

    Args:
        config: Assessment config (entryQuestionId is optional)
        questions: All questions of the assessment
        answers: All answers of the assessment

    Returns:
        DecisionTreeGraph with nodes, edges, reachability, cycles, orphans
        and warnings for dropped routing
    """
    graph = DecisionTreeGraph()
    question_ids = {q["id"] for q in questions}

    for question in questions:
        graph.nodes[question["id"]] = DecisionTreeNode(
            id=question["id"],
            question_text=question.get("questionText", ""),
            order=question["order"],
            has_conditional_logic=bool(question.get("conditionalLogic")),
        )

    entry_question_id = resolve_entry_question_id(config, questions)
    graph.entry_question_id = entry_question_id
    if entry_question_id is not None:
        graph.nodes[entry_question_id].is_entry = True

    graph.edges.extend(_build_answer_edges(answers, question_ids, graph.warnings))
    graph.edges.extend(_build_conditional_edges(questions, answers, question_ids, graph.warnings))

    adjacency: dict[str, list[str]] = defaultdict(list)
    for edge in graph.edges:
        adjacency[edge.from_question_id].append(edge.to_question_id)

    if entry_question_id is not None:
        graph.reachable_nodes = _find_reachable(entry_question_id, adjacency)
    for node_id in graph.reachable_nodes:
        graph.nodes[node_id].is_reachable = True

    # One representative edge per back-edge pair
    cycle_edge_ids: set[str] = set()
    for from_id, to_id in _find_back_edges([q["id"] for q in questions], adjacency):
        edge = next(
            (e for e in graph.edges if e.from_question_id == from_id and e.to_question_id == to_id),
            None,
        )
        if edge is not None:
            cycle_edge_ids.add(edge.id)

    for edge in graph.edges:
        if edge.id in cycle_edge_ids:
            edge.is_cycle = True
            graph.cycles.append(edge)

    for node in graph.nodes.values():
        if not node.is_reachable and not node.is_entry:
            node.is_orphaned = True
            graph.orphaned_nodes.append(node)

    for warning in graph.warnings:
        logger.warning("Decision tree: %s", warning)

    if graph.cycles:
        logger.info(
            "Decision tree: %d cycle edge(s) found: %s",
            len(graph.cycles),
            ", ".join(e.id for e in graph.cycles),
        )

    return graph
