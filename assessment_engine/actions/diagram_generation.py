"""
Deterministic diagram generation for the decision tree admin view.

Generates Mermaid flowcharts and a plain-text warnings report from an
analyzed DecisionTreeGraph.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from assessment_engine.engine.decision_tree import CONDITIONAL_EDGE, DecisionTreeGraph
from assessment_engine.engine.routing import Terminate, parse_routing, truncate_label
from assessment_engine.state.assessment_state import Answer


logger = logging.getLogger(__name__)

NODE_LABEL_LIMIT = 40


def _safe_id(prefix: str, raw_id: str) -> str:
    """Mermaid node ids may only contain word characters."""
    return f"{prefix}_{re.sub(r'[^A-Za-z0-9_]', '_', raw_id)}"


class _NodeIds:
    """Assigns each raw id a unique Mermaid id, suffixing sanitized collisions."""

    def __init__(self, prefix: str):
        self.prefix = prefix
        self._by_raw: dict[str, str] = {}
        self._taken: set[str] = set()

    def get(self, raw_id: str) -> str:
        if raw_id in self._by_raw:
            return self._by_raw[raw_id]

        base = _safe_id(self.prefix, raw_id)
        node_id = base
        suffix = 2
        while node_id in self._taken:
            node_id = f"{base}_{suffix}"
            suffix += 1
        if node_id != base:
            logger.warning("Mermaid id %s already used, drawing %r as %s", base, raw_id, node_id)

        self._by_raw[raw_id] = node_id
        self._taken.add(node_id)
        return node_id

    def items(self):
        return self._by_raw.items()


def _escape(label: str) -> str:
    return label.replace('"', "'")


def build_decision_tree_mermaid(graph: DecisionTreeGraph, answers: Optional[list[Answer]] = None) -> str:
    """
    Generate a Mermaid flowchart of the question flow.

    Uses:
    - (["..."]) for the entry question
    - ["..."] for other questions
    - [["..."]] for result buckets
    - --> for answer routing, -.-> for conditional display
    - red links for cycle edges, dashed outline for orphaned questions

    Args:
        graph: Analyzed decision tree
        answers: Answer definitions; terminal answers get an edge to their bucket

    Returns:
        Mermaid flowchart string
    """
    lines = ["flowchart TD"]
    link_index = 0
    cycle_links: list[int] = []
    orphan_ids: list[str] = []
    question_ids = _NodeIds("q")
    bucket_ids = _NodeIds("bucket")

    for node in sorted(graph.nodes.values(), key=lambda n: n.order):
        node_id = question_ids.get(node.id)
        label = _escape(truncate_label(node.question_text, NODE_LABEL_LIMIT) or node.id)
        if node.is_entry:
            lines.append(f'    {node_id}(["{label}"])')
        else:
            lines.append(f'    {node_id}["{label}"]')
        if node.is_orphaned:
            orphan_ids.append(node_id)

    terminal_edges: list[tuple[str, str, str]] = []
    for answer in answers or []:
        if answer.get("questionId") not in graph.nodes:
            continue
        routing = parse_routing(answer.get("answerValue"))
        if not isinstance(routing, Terminate):
            continue
        terminal_edges.append(
            (
                question_ids.get(answer["questionId"]),
                bucket_ids.get(routing.bucket_key),
                truncate_label(answer.get("answerText")),
            )
        )

    for bucket_key, bucket_id in bucket_ids.items():
        lines.append(f'    {bucket_id}[["{_escape(bucket_key)}"]]')

    for edge in graph.edges:
        from_id = question_ids.get(edge.from_question_id)
        to_id = question_ids.get(edge.to_question_id)
        arrow = "-.->" if edge.kind == CONDITIONAL_EDGE else "-->"
        if edge.label:
            lines.append(f'    {from_id} {arrow}|"{_escape(edge.label)}"| {to_id}')
        else:
            lines.append(f'    {from_id} {arrow} {to_id}')
        if edge.is_cycle:
            cycle_links.append(link_index)
        link_index += 1

    for from_id, to_id, label in terminal_edges:
        if label:
            lines.append(f'    {from_id} -->|"{_escape(label)}"| {to_id}')
        else:
            lines.append(f'    {from_id} --> {to_id}')
        link_index += 1

    if orphan_ids:
        lines.append("    classDef orphan stroke-dasharray: 5 5,stroke:#999")
        lines.append(f"    class {','.join(orphan_ids)} orphan")

    if cycle_links:
        lines.append(f"    linkStyle {','.join(str(i) for i in cycle_links)} stroke:#d33,stroke-width:2px")

    return "\n".join(lines)


def validate_decision_tree_flowchart(mermaid: str) -> tuple[bool, Optional[str]]:
    """
    Validate a decision tree flowchart.

    Checks:
    - Must start with 'flowchart'
    - Every edge endpoint is a declared node

    Returns:
        (is_valid, error_message)
    """
    if not mermaid or not mermaid.strip():
        return False, "Empty Mermaid diagram"

    lines = mermaid.strip().split('\n')

    if not lines[0].strip().lower().startswith('flowchart'):
        return False, "Must start with 'flowchart'"

    declared = set()
    for line in lines[1:]:
        match = re.match(r'\s*(\w+)[\[(]', line)
        if match:
            declared.add(match.group(1))

    for line in lines[1:]:
        match = re.match(r'\s*(\w+)\s+-\.?->(?:\|"[^"]*"\|)?\s+(\w+)\s*$', line)
        if not match:
            continue
        for endpoint in match.groups():
            if endpoint not in declared:
                return False, f"Edge references undeclared node '{endpoint}'"

    return True, None


def build_warnings_report(graph: DecisionTreeGraph) -> list[str]:
    """
    Human-readable warnings for the admin banner.

    Returns:
        One line per problem; empty when the tree is healthy
    """
    report: list[str] = []

    if graph.entry_node is None and graph.nodes:
        report.append("No entry question could be resolved")

    for edge in graph.cycles:
        report.append(
            f"Cycle: {edge.from_question_id} -> {edge.to_question_id} ({edge.kind} edge {edge.id})"
        )

    for node in sorted(graph.orphaned_nodes, key=lambda n: n.order):
        report.append(f"Orphaned question: {node.id} ({truncate_label(node.question_text)})")

    report.extend(graph.warnings)
    return report


def write_mermaid_artifact(file_path: str, content: str) -> None:
    """
    Write Mermaid content to a file, creating directories if needed.

    Args:
        file_path: Path to write to (e.g., "artifacts/gtm_readiness.mmd")
        content: Mermaid diagram content
    """
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
