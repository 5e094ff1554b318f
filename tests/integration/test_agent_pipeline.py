import asyncio

from langchain_core.messages import AIMessage, SystemMessage, ToolMessage

from cover_agent.agent.fallback import DeterministicPlanner
from cover_agent.agent.planner import InsurancePlanner
from cover_agent.agent.registry import ToolRegistry
from cover_agent.agent.tools import register_builtin_tools
from cover_agent.config import AgentConfig
from cover_agent.obs.tracing import TraceStore
from cover_agent.types import ConversationTurn

BOOKING_URL = "https://book.example/advisor"


def _planner(corpus, model, **config) -> tuple[InsurancePlanner, TraceStore]:
    registry = ToolRegistry()
    register_builtin_tools(registry, corpus, booking_url=lambda: BOOKING_URL)
    trace_store = TraceStore()
    planner = InsurancePlanner(
        llm=model,
        corpus=corpus,
        tool_registry=registry,
        trace_store=trace_store,
        config=AgentConfig(**config),
    )
    return planner, trace_store


def test_planner_answers_with_context_tools_and_booking_link(corpus, scripted_model) -> None:
    model = scripted_model(
        [
            AIMessage(
                content="",
                tool_calls=[
                    {
                        "name": "search_insurance_knowledge",
                        "args": {"query": "no claim bonus"},
                        "id": "call-kb",
                    },
                    {
                        "name": "book_consultation",
                        "args": {"reason": "family floater"},
                        "id": "call-book",
                    },
                ],
            ),
            AIMessage(content="NCB grows your cover each claim-free year. I can book you a call."),
        ]
    )
    planner, trace_store = _planner(corpus, model)

    result = asyncio.run(planner.ainvoke("What is no claim bonus?"))

    assert result["answer"].startswith("NCB grows your cover")
    assert result["booking_url"] == BOOKING_URL
    assert result["tools_used"] == ["search_insurance_knowledge", "book_consultation"]
    assert result["rounds"] == 1
    assert result["stop_reason"] == "completed"

    first_call = model.calls[0]
    assert isinstance(first_call[0], SystemMessage)
    assert "=== RELEVANT ARTICLES ===" in first_call[0].content
    assert "The user is speaking in: English" in first_call[0].content
    tool_ids = [m.tool_call_id for m in model.calls[1] if isinstance(m, ToolMessage)]
    assert tool_ids == ["call-kb", "call-book"]

    trace = trace_store.get(result["trace_id"])
    assert [tool.name for tool in trace.tool_traces] == [
        "search_insurance_knowledge",
        "book_consultation",
    ]
    assert trace.context_sections[0] == "articles"
    assert trace.rounds == 1


def test_planner_windows_history_and_applies_hindi_directive(corpus, scripted_model) -> None:
    model = scripted_model([AIMessage(content="ठीक है।")])
    planner, _ = _planner(corpus, model, history_window=2)
    history = [
        ConversationTurn(role="user", content="first"),
        ConversationTurn(role="assistant", content="second"),
        {"role": "user", "content": "third"},
    ]

    result = asyncio.run(
        planner.ainvoke("term insurance kya hai", chat_history=history, language="hi")
    )

    sent = model.calls[0]
    assert "Respond in Hindi (Devanagari script)" in sent[0].content
    assert [m.content for m in sent[1:]] == ["second", "third", "term insurance kya hai"]
    assert isinstance(sent[1], AIMessage)
    assert result["booking_url"] is None
    assert result["rounds"] == 0


def test_planner_without_matches_uses_no_context_notice(corpus, scripted_model) -> None:
    model = scripted_model([AIMessage(content="Could you tell me more?")])
    planner, trace_store = _planner(corpus, model)

    result = asyncio.run(planner.ainvoke("zzzz qqqq"))

    assert "No specific context found" in model.calls[0][0].content
    assert trace_store.get(result["trace_id"]).context_sections == []


def test_planner_reports_partial_answer_at_iteration_cap(corpus, scripted_model) -> None:
    looping = AIMessage(
        content="Let me check once more.",
        tool_calls=[{"name": "search_policies", "args": {"query": "care"}, "id": "call-p"}],
    )
    model = scripted_model([looping], repeat_last=True)
    planner, trace_store = _planner(corpus, model)

    result = asyncio.run(planner.ainvoke("best plan with no copay"))

    assert result["stop_reason"] == "iteration_cap"
    assert result["rounds"] == 5
    assert result["answer"] == "Let me check once more."
    assert trace_store.summary()["iteration_cap_hits"] == 1


def test_deterministic_planner_answers_from_context(corpus) -> None:
    trace_store = TraceStore()
    planner = DeterministicPlanner(corpus=corpus, trace_store=trace_store)

    found = asyncio.run(planner.ainvoke("cashless"))
    missing = asyncio.run(planner.ainvoke("zzzz"))

    assert found["answer"].startswith("How to File a Cashless Health Insurance Claim:")
    assert found["stop_reason"] == "offline"
    assert missing["answer"].startswith("I could not find this")
    assert trace_store.summary()["total_requests"] == 2
