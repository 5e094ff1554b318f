"""Per-question tracing and token cost accounting."""

from __future__ import annotations

import re
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from cover_agent.types import ToolTrace

_TOKEN_PATTERN = re.compile(r"\w+|[^\w\s]", flags=re.UNICODE)


@dataclass(slots=True)
class TraceRecord:
    trace_id: str
    timestamp_utc: str
    question: str
    answer: str
    language: str
    tool_traces: list[ToolTrace]
    rounds: int
    stop_reason: str
    context_sections: list[str]
    input_tokens: int
    output_tokens: int
    estimated_cost_usd: float
    latency_ms: float


@dataclass(slots=True)
class CostModel:
    """Simple token pricing model (USD per 1K tokens)."""

    input_per_1k: float = 0.00015
    output_per_1k: float = 0.0006

    def estimate_cost(self, input_tokens: int, output_tokens: int) -> float:
        return (input_tokens / 1000.0) * self.input_per_1k + (
            output_tokens / 1000.0
        ) * self.output_per_1k


class TraceStore:
    """In-memory trace storage for API-level observability.

    Records live only for the process lifetime.
    """

    def __init__(self, *, cost_model: CostModel | None = None, max_records: int = 1000) -> None:
        self._records: dict[str, TraceRecord] = {}
        self._cost_model = cost_model or CostModel()
        self._max_records = max_records

    def create_record(
        self,
        *,
        question: str,
        answer: str,
        language: str,
        tool_traces: list[ToolTrace],
        rounds: int,
        stop_reason: str,
        context_sections: list[str],
        input_tokens: int,
        output_tokens: int,
        latency_ms: float,
    ) -> TraceRecord:
        trace_id = str(uuid.uuid4())
        record = TraceRecord(
            trace_id=trace_id,
            timestamp_utc=datetime.now(timezone.utc).isoformat(),
            question=question,
            answer=answer,
            language=language,
            tool_traces=tool_traces,
            rounds=rounds,
            stop_reason=stop_reason,
            context_sections=context_sections,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            estimated_cost_usd=self._cost_model.estimate_cost(input_tokens, output_tokens),
            latency_ms=latency_ms,
        )
        self._records[trace_id] = record
        while len(self._records) > self._max_records:
            self._records.pop(next(iter(self._records)))
        return record

    def get(self, trace_id: str) -> TraceRecord:
        record = self._records.get(trace_id)
        if record is None:
            raise KeyError(f"Trace not found: {trace_id}")
        return record

    def list_recent(self, limit: int = 20) -> list[TraceRecord]:
        return list(self._records.values())[-limit:]

    def summary(self) -> dict[str, float | int]:
        """Aggregate request, tool and cost metrics for dashboard display."""
        records = list(self._records.values())
        total = len(records)
        if total == 0:
            return {
                "total_requests": 0,
                "avg_latency_ms": 0.0,
                "p95_latency_ms": 0.0,
                "avg_rounds": 0.0,
                "iteration_cap_hits": 0,
                "total_tool_calls": 0,
                "total_input_tokens": 0,
                "total_output_tokens": 0,
                "total_estimated_cost_usd": 0.0,
            }

        latencies = sorted(record.latency_ms for record in records)
        p95_index = max(0, int((len(latencies) * 0.95) - 1))

        return {
            "total_requests": total,
            "avg_latency_ms": sum(latencies) / total,
            "p95_latency_ms": latencies[p95_index],
            "avg_rounds": sum(record.rounds for record in records) / total,
            "iteration_cap_hits": sum(
                1 for record in records if record.stop_reason == "iteration_cap"
            ),
            "total_tool_calls": sum(len(record.tool_traces) for record in records),
            "total_input_tokens": sum(record.input_tokens for record in records),
            "total_output_tokens": sum(record.output_tokens for record in records),
            "total_estimated_cost_usd": sum(
                record.estimated_cost_usd for record in records
            ),
        }


class Timer:
    """Simple context timer used by planners."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0


def estimate_token_count(text: str) -> int:
    return len(_TOKEN_PATTERN.findall(text))
