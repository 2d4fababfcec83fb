"""
Tests for the coach graph routing.
"""

from graph_app import build_coach_graph
from schemas import CoachState, SafetyResult


def run(graph, state):
    result = graph.invoke(state)
    return CoachState(**result) if isinstance(result, dict) else result


class TestCoachGraph:
    def test_allowed_message_gets_context_and_reply(self, fake_llm):
        seen = []

        def context_node(state):
            seen.append(state.last_user_message)
            return {"system_instruction": "Context for u1"}

        final = run(build_coach_graph(context_node), CoachState(user_id="u1", last_user_message="Hi"))

        assert seen == ["Hi"]
        assert final.blocked is False
        assert final.system_instruction == "Context for u1"
        assert final.coach_reply == "Take a slow breath with me."
        assert isinstance(fake_llm.calls[-1][1], list)

    def test_blocked_message_skips_context_and_coach(self, fake_llm):
        fake_llm.structured[SafetyResult] = SafetyResult(
            risk="self_harm", action="block_and_escalate", message="Please reach out to a helpline."
        )

        def context_node(state):
            raise AssertionError("context must not run for blocked messages")

        final = run(build_coach_graph(context_node), CoachState(user_id="u1", last_user_message="..."))

        assert final.blocked is True
        assert final.coach_reply == "Please reach out to a helpline."
        assert [c[0] for c in fake_llm.calls] == ["SafetyResult"]
