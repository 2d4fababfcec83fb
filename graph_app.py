from typing import Any, Callable, Dict

from langgraph.graph import StateGraph, END
from schemas import CoachState
from ai_nodes import (
    safety_node,
    blocked_reply_node,
    coach_node,
)


def _route_after_safety(state: CoachState) -> str:
    return "blocked" if state.blocked else "context"


def build_coach_graph(context_node: Callable[[CoachState], Dict[str, Any]]):
    """
    One coach turn:

    1) safety   – classify the user's message.
    2) blocked  – safe canned reply if the message must be escalated (then END).
    3) context  – attach the system instruction built from the user's recent data.
    4) coach    – model reply, appended to chat_history.
    """
    graph = StateGraph(CoachState)

    graph.add_node("safety", safety_node)
    graph.add_node("blocked", blocked_reply_node)
    graph.add_node("context", context_node)
    graph.add_node("coach", coach_node)

    graph.set_entry_point("safety")

    graph.add_conditional_edges(
        "safety",
        _route_after_safety,
        {"blocked": "blocked", "context": "context"},
    )
    graph.add_edge("blocked", END)
    graph.add_edge("context", "coach")
    graph.add_edge("coach", END)

    return graph.compile()
