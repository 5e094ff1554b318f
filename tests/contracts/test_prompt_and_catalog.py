from cover_agent.agent.planner import SYSTEM_PROMPT, build_system_prompt
from cover_agent.agent.registry import ToolRegistry
from cover_agent.agent.tools import register_builtin_tools


def test_prompt_contains_voice_and_advice_constraints() -> None:
    assert "under 60 words" in SYSTEM_PROMPT
    assert "NOT a licensed insurance advisor" in SYSTEM_PROMPT
    assert "book a consultation" in SYSTEM_PROMPT


def test_system_prompt_places_context_after_language_directive() -> None:
    prompt = build_system_prompt("=== RELEVANT ARTICLES ===\n--- A ---\nbody", "en")

    assert prompt.index("## CURRENT LANGUAGE") < prompt.index("## RELEVANT KNOWLEDGE BASE CONTEXT")
    assert prompt.endswith("=== RELEVANT ARTICLES ===\n--- A ---\nbody")


def test_catalog_entries_follow_published_shape(corpus) -> None:
    registry = ToolRegistry()
    register_builtin_tools(registry, corpus, booking_url=lambda: "https://book.example")

    for entry in registry.catalog():
        assert set(entry) == {"name", "description", "parameters"}
        assert entry["description"]
        for param in entry["parameters"].values():
            assert param["type"] in {"string", "number", "integer", "boolean", "array"}
            assert isinstance(param["required"], bool)
            assert param.get("description")

    for schema in registry.function_schemas():
        function = schema["function"]
        assert schema["type"] == "function"
        assert set(function["parameters"]["required"]) <= set(function["parameters"]["properties"])
