"""Tool registry built on Pydantic v2 models."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from time import perf_counter
from typing import Any

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, ConfigDict, Field

from mho_agent.types import ToolTrace


class ToolSpec(BaseModel):
    """Declarative tool specification for registration and validation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    description: str
    args_schema: type[BaseModel]
    handler: Callable[[BaseModel], Any]
    tags: list[str] = Field(default_factory=list)

    @property
    def parameters(self) -> dict[str, Any]:
        return self.args_schema.model_json_schema()

    @property
    def required(self) -> list[str]:
        return [
            name
            for name, info in self.args_schema.model_fields.items()
            if info.is_required()
        ]

    def invoke(self, payload: dict[str, Any]) -> Any:
        data = self.args_schema.model_validate(payload)
        return self.handler(data)


class ToolRegistry:
    """Stores tool specs and provider-native tool declarations.

    Specs are exported as LangChain `StructuredTool` objects. Native
    declarations (e.g. `{"google_search": {}}`) are passed to the chat model
    untouched since the provider executes them itself.
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolSpec] = {}
        self._native: dict[str, dict[str, Any]] = {}
        self._observer: Callable[[ToolTrace], None] | None = None

    def register(self, spec: ToolSpec) -> None:
        self._check_free(spec.name)
        self._tools[spec.name] = spec

    def register_native(self, name: str, declaration: dict[str, Any]) -> None:
        self._check_free(name)
        self._native[name] = dict(declaration)

    def set_observer(self, observer: Callable[[ToolTrace], None] | None) -> None:
        """Set an optional callback invoked after each tool execution."""
        self._observer = observer

    def execute(self, name: str, payload: dict[str, Any]) -> Any:
        spec = self._tools.get(name)
        if spec is None:
            raise KeyError(f"Unknown tool: {name}")
        return self._execute_spec(spec, payload)

    def as_langchain_tools(self, names: Iterable[str] | None = None) -> list[Any]:
        """Export tools in bind order; `names=None` exports everything."""
        selected = list(self.names()) if names is None else list(names)
        tools: list[Any] = []
        for name in selected:
            if name in self._tools:
                spec = self._tools[name]
                tools.append(
                    StructuredTool.from_function(
                        name=spec.name,
                        description=spec.description,
                        args_schema=spec.args_schema,
                        func=self._build_function(spec),
                    )
                )
            elif name in self._native:
                tools.append(dict(self._native[name]))
            else:
                raise KeyError(f"Unknown tool: {name}")
        return tools

    def names(self) -> list[str]:
        return [*self._tools, *self._native]

    def specs(self) -> list[ToolSpec]:
        return list(self._tools.values())

    def _check_free(self, name: str) -> None:
        if name in self._tools or name in self._native:
            raise ValueError(f"Tool already registered: {name}")

    def _build_function(self, spec: ToolSpec) -> Callable[..., Any]:
        def _callable(**kwargs: Any) -> Any:
            return self._execute_spec(spec, kwargs)

        return _callable

    def _execute_spec(self, spec: ToolSpec, payload: dict[str, Any]) -> Any:
        start = perf_counter()
        output = spec.invoke(payload)
        latency_ms = (perf_counter() - start) * 1000.0

        if self._observer is not None:
            self._observer(
                ToolTrace(
                    name=spec.name,
                    input_payload=payload,
                    output_preview=str(output)[:320],
                    latency_ms=latency_ms,
                )
            )
        return output
