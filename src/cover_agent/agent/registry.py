"""Tool registry built on Pydantic v2 models."""

from __future__ import annotations

from collections.abc import Callable
from time import perf_counter
from typing import Any

from langchain_core.tools import StructuredTool
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from cover_agent.errors import UnknownToolError
from cover_agent.types import ToolOutcome, ToolStatus, ToolTrace

ENGINE_REQUIRED = "x-engine-required"

ToolObserver = Callable[[ToolTrace], None]


class ToolInput(BaseModel):
    """Base class for tool argument models.

    Every field carries a default so a missing argument degrades to that
    default instead of failing. Fields the engine is asked to always send are
    declared with `engine_required` and listed as required in the catalog.
    Explicit nulls are treated as missing.
    """

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


def engine_required(default: Any, description: str) -> Any:
    """Declare a field the engine must send, with a fallback default."""

    return Field(
        default=default,
        description=description,
        json_schema_extra={ENGINE_REQUIRED: True},
    )


class ToolSpec(BaseModel):
    """Declarative tool specification for registration and validation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    description: str
    args_schema: type[ToolInput]
    handler: Callable[[Any], str]
    tags: list[str] = Field(default_factory=list)

    def invoke(self, payload: dict[str, Any]) -> str:
        data = self.args_schema.model_validate(payload)
        return self.handler(data)

    def parameters(self) -> dict[str, dict[str, Any]]:
        """Return parameter name -> {type, required, enum, items, description}."""

        schema = self.args_schema.model_json_schema()
        params: dict[str, dict[str, Any]] = {}
        for field_name, prop in schema.get("properties", {}).items():
            entry = _flatten_property(prop)
            entry["required"] = bool(prop.get(ENGINE_REQUIRED))
            params[field_name] = entry
        return params

    def catalog_entry(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters(),
        }

    def function_schema(self) -> dict[str, Any]:
        """OpenAI function-calling form of `catalog_entry`."""

        properties: dict[str, Any] = {}
        required: list[str] = []
        for param_name, param in self.parameters().items():
            properties[param_name] = {
                key: value for key, value in param.items() if key != "required"
            }
            if param["required"]:
                required.append(param_name)
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": properties,
                    "required": required,
                },
            },
        }


class ToolRegistry:
    """Stores tool specs and dispatches invocations by name."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolSpec] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._tools[spec.name] = spec

    def resolve(self, name: str) -> ToolSpec:
        spec = self._tools.get(name)
        if spec is None:
            raise UnknownToolError(name)
        return spec

    def specs(self) -> list[ToolSpec]:
        return list(self._tools.values())

    def catalog(self) -> list[dict[str, Any]]:
        return [spec.catalog_entry() for spec in self._tools.values()]

    def function_schemas(self) -> list[dict[str, Any]]:
        return [spec.function_schema() for spec in self._tools.values()]

    def as_langchain_tools(self, *, observer: ToolObserver | None = None) -> list[StructuredTool]:
        """Export specs as LangChain tools that return outcome text."""

        return [
            StructuredTool.from_function(
                name=spec.name,
                description=spec.description,
                args_schema=spec.args_schema,
                func=self._build_function(spec.name, observer),
            )
            for spec in self._tools.values()
        ]

    def invoke(
        self,
        name: str,
        payload: dict[str, Any],
        *,
        observer: ToolObserver | None = None,
    ) -> ToolOutcome:
        """Run a tool and always return an outcome, never raise.

        Unknown names, unusable arguments and handler failures are reported
        as text so the engine can recover within the conversation.
        """

        start = perf_counter()
        try:
            spec = self.resolve(name)
        except UnknownToolError as exc:
            logger.warning("Engine requested unregistered tool {}", name)
            outcome = ToolOutcome(name=name, content=str(exc), status=ToolStatus.UNKNOWN_TOOL)
        else:
            outcome = self._execute_spec(spec, payload)
        latency_ms = (perf_counter() - start) * 1000.0

        if observer is not None:
            observer(
                ToolTrace(
                    name=name,
                    input_payload=payload,
                    output_preview=outcome.content[:320],
                    latency_ms=latency_ms,
                    status=outcome.status.value,
                )
            )
        return outcome

    def _build_function(self, name: str, observer: ToolObserver | None) -> Callable[..., str]:
        def _callable(**kwargs: Any) -> str:
            return self.invoke(name, kwargs, observer=observer).content

        return _callable

    def _execute_spec(self, spec: ToolSpec, payload: dict[str, Any]) -> ToolOutcome:
        try:
            output = spec.invoke(payload)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc']) or 'input'}: {error['msg']}"
                for error in exc.errors()
            )
            logger.info("Rejected arguments for {}: {}", spec.name, problems)
            return ToolOutcome(
                name=spec.name,
                content=f"Invalid arguments for {spec.name}: {problems}",
                status=ToolStatus.INVALID_INPUT,
            )
        except Exception as exc:
            logger.exception("Tool {} failed", spec.name)
            return ToolOutcome(
                name=spec.name,
                content=f"Tool {spec.name} failed: {exc}",
                status=ToolStatus.ERROR,
            )
        return ToolOutcome(name=spec.name, content=output)


def _flatten_property(prop: dict[str, Any]) -> dict[str, Any]:
    branches = [
        branch for branch in prop.get("anyOf", [prop]) if branch.get("type") != "null"
    ]
    base = branches[0] if branches else {}
    entry: dict[str, Any] = {"type": base.get("type", "string")}
    if "enum" in base:
        entry["enum"] = list(base["enum"])
    if "items" in base:
        entry["items"] = {"type": base["items"].get("type", "string")}
    if "description" in prop:
        entry["description"] = prop["description"]
    return entry
