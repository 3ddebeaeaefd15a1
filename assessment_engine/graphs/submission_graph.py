"""
LangGraph graph definition for scoring an assessment submission.

- Explicit routing (no implicit cycles)
- No checkpointer: each submission is scored from its own snapshot
"""

from typing import Optional

from langgraph.graph import StateGraph, END

from assessment_engine.state.assessment_state import (
    DEFAULT_MAX_ROUTING_STEPS,
    AssessmentDefinition,
    SubmissionState,
    SubmittedAnswer,
    create_initial_state,
)
from assessment_engine.nodes.submission_nodes import (
    validate_submission_node,
    score_submission_node,
    finalize_result_node,
    should_score
)


def create_submission_graph():
    """
    Create the submission graph.

    Flow:
    1. validate_submission: Reject empty/malformed submissions, normalize scoring method
    2. score_submission: Points-based or decision-tree bucket resolution
    3. finalize_result: Map an undetermined bucket to an error

    Returns:
        Compiled graph
    """
    builder = StateGraph(SubmissionState)

    builder.add_node("validate_submission", validate_submission_node)
    builder.add_node("score_submission", score_submission_node)
    builder.add_node("finalize_result", finalize_result_node)

    builder.set_entry_point("validate_submission")

    builder.add_conditional_edges(
        "validate_submission",
        should_score,
        {
            "score": "score_submission",
            "end": END
        }
    )
    builder.add_edge("score_submission", "finalize_result")
    builder.add_edge("finalize_result", END)

    return builder.compile()


def score_submission(
    assessment: AssessmentDefinition,
    submitted_answers: list[SubmittedAnswer],
    max_routing_steps: int = DEFAULT_MAX_ROUTING_STEPS,
    graph: Optional[object] = None
) -> SubmissionState:
    """
    Run one submission through the pipeline.

    Returns:
        Final state; bucket_key is set on success, error otherwise
    """
    graph = graph or create_submission_graph()
    state = create_initial_state(assessment, submitted_answers, max_routing_steps=max_routing_steps)
    return graph.invoke(state)  # type: ignore[attr-defined]
