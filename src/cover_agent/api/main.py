"""FastAPI entrypoint for chat, source search and trace endpoints."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict
from typing import Any, Literal

from fastapi import FastAPI, HTTPException
from loguru import logger
from pydantic import BaseModel, Field

from cover_agent.agent.fallback import DeterministicPlanner
from cover_agent.agent.planner import InsurancePlanner
from cover_agent.agent.registry import ToolRegistry
from cover_agent.agent.tools import register_builtin_tools
from cover_agent.config import AgentConfig, RetrievalConfig, Settings
from cover_agent.errors import UpstreamError
from cover_agent.obs.logging import setup_logger
from cover_agent.obs.tracing import TraceStore
from cover_agent.retrieval.corpus import load_corpus
from cover_agent.retrieval.search import rank, scored_text
from cover_agent.types import ConversationTurn, SearchFilters


def _create_llm(settings: Settings) -> Any:
    if not settings.openai_api_key:
        return None

    from langchain_openai import ChatOpenAI

    return ChatOpenAI(
        model=settings.openai_model,
        api_key=settings.openai_api_key,
        temperature=0,
        max_tokens=settings.max_tokens,
    )


def _booking_url_reader(settings: Settings) -> Callable[[], str]:
    """Re-read `BOOKING_URL` on every call, falling back to the startup value."""

    def _read() -> str:
        return Settings().booking_url or settings.resolved_booking_url()

    return _read


class ChatTurnModel(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = ""
    conversation_history: list[ChatTurnModel] = Field(default_factory=list)
    language: Literal["en", "hi"] = "en"


class SourceSearchRequest(BaseModel):
    query: str = Field(min_length=1)
    collection: Literal["articles", "policies", "claims", "insurers"] = "articles"
    category: str | None = None
    insurer: str | None = None
    top_k: int = Field(default=5, ge=1, le=20)


def create_app(settings: Settings | None = None, *, llm: Any | None = None) -> FastAPI:
    """Build the corpus, tools and planner once and wire the routes."""

    settings = settings or Settings()
    setup_logger(settings.log_level)

    corpus = load_corpus(settings.corpus_path)
    retrieval_config = RetrievalConfig()
    agent_config = AgentConfig(context_char_budget=settings.context_char_budget)

    registry = ToolRegistry()
    register_builtin_tools(
        registry,
        corpus,
        config=retrieval_config,
        booking_url=_booking_url_reader(settings),
    )
    trace_store = TraceStore()
    llm = llm if llm is not None else _create_llm(settings)
    planner: InsurancePlanner | DeterministicPlanner
    if llm is not None:
        planner = InsurancePlanner(
            llm=llm,
            corpus=corpus,
            tool_registry=registry,
            trace_store=trace_store,
            config=agent_config,
            retrieval_config=retrieval_config,
        )
    else:
        logger.warning("OPENAI_API_KEY not set; using deterministic planner")
        planner = DeterministicPlanner(
            corpus=corpus,
            trace_store=trace_store,
            config=agent_config,
            retrieval_config=retrieval_config,
        )

    collections = {
        "articles": corpus.articles,
        "policies": corpus.policies,
        "claims": corpus.claims_guides,
        "insurers": corpus.insurers,
    }

    app = FastAPI(title="Cover Agent", version="0.1.0")

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {
            "status": "ok",
            "llm_configured": llm is not None,
            "planner_mode": "langchain" if llm is not None else "deterministic",
            "corpus": corpus.sizes(),
            "trace_count": len(trace_store.list_recent(limit=1000)),
        }

    @app.post("/chat")
    async def chat(request: ChatRequest) -> dict[str, Any]:
        if not request.message.strip():
            raise HTTPException(status_code=400, detail="No message provided")
        history = [
            ConversationTurn(role=turn.role, content=turn.content)
            for turn in request.conversation_history
        ]
        try:
            return await planner.ainvoke(
                request.message, chat_history=history, language=request.language
            )
        except UpstreamError as exc:
            logger.error("Chat failed: {}", exc)
            raise HTTPException(status_code=502, detail=str(exc)) from exc

    @app.post("/sources/search")
    def source_search(request: SourceSearchRequest) -> dict[str, Any]:
        matches = rank(
            collections[request.collection],
            request.query,
            filters=SearchFilters(category=request.category, insurer=request.insurer),
            max_results=request.top_k,
            prefix_chars=retrieval_config.scored_prefix_chars,
        )
        return {
            "items": [
                {
                    "id": match.document.id,
                    "category": match.document.category,
                    "score": match.score,
                    "text": scored_text(match.document, retrieval_config.scored_prefix_chars),
                }
                for match in matches
            ]
        }

    @app.get("/tools")
    def tools() -> dict[str, Any]:
        return {"items": registry.catalog()}

    @app.get("/traces")
    def traces(limit: int = 20) -> dict[str, Any]:
        records = [asdict(record) for record in trace_store.list_recent(limit=limit)]
        return {"items": records}

    @app.get("/traces/{trace_id}")
    def trace_detail(trace_id: str) -> dict[str, Any]:
        try:
            record = trace_store.get(trace_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return asdict(record)

    @app.get("/metrics")
    def metrics() -> dict[str, Any]:
        return trace_store.summary()

    return app


app = create_app()
