"""Specialist phase: run the chosen agent with its persona and tools."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from langchain_core.prompts import ChatPromptTemplate
from pydantic import ValidationError

from mho_agent.agent.llm import create_chat_model, message_text
from mho_agent.agent.personas import persona_for
from mho_agent.agent.registry import ToolRegistry
from mho_agent.agent.tools import DOCUMENT_TOOL, default_registry
from mho_agent.config import BackendConfig, ExecutorConfig
from mho_agent.obs.audit import Timer
from mho_agent.types import (
    AgentIdentifier,
    CitationSource,
    ExecutionResult,
    GeneratedDocument,
)

logger = logging.getLogger(__name__)

DOCUMENT_CONFIRMATION = (
    "I have generated the {doc_type} document for you. Please verify the details below."
)
EMPTY_REPLY = "Processed request."
ERROR_REPLY = (
    "I encountered a system error processing your request. Please contact IT support."
)

_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", "{instruction}"),
        ("human", "Context: {history}\n\nCurrent Request: {request}"),
    ]
)


class SpecialistExecutor:
    """Runs one specialist call per turn and interprets the reply.

    Interpretation order: a `generate_document` tool call wins, then plain
    text, then a canned line. Grounding citations are collected regardless.
    Errors from the backend or while interpreting its reply are logged and
    turned into `ERROR_REPLY`.
    """

    def __init__(
        self,
        *,
        llm: Any,
        tool_registry: ToolRegistry | None = None,
        config: ExecutorConfig | None = None,
    ) -> None:
        self.llm = llm
        self.tool_registry = tool_registry or default_registry()
        self.config = config or ExecutorConfig()

    @classmethod
    def from_backend(
        cls,
        backend: BackendConfig,
        config: ExecutorConfig | None = None,
        tool_registry: ToolRegistry | None = None,
    ) -> "SpecialistExecutor":
        config = config or ExecutorConfig()
        llm = create_chat_model(backend, temperature=config.temperature)
        if llm is None:
            raise ValueError("Backend credential is not configured.")
        return cls(llm=llm, tool_registry=tool_registry, config=config)

    def run(
        self,
        agent: AgentIdentifier | str,
        request_text: str,
        history_text: str = "",
    ) -> ExecutionResult:
        persona = persona_for(agent)
        agent_name = agent.value if isinstance(agent, AgentIdentifier) else str(agent)
        messages = _PROMPT.format_messages(
            instruction=persona.instruction,
            history=history_text,
            request=request_text,
        )
        try:
            model = self.llm
            if persona.tools:
                model = self.llm.bind_tools(
                    self.tool_registry.as_langchain_tools(persona.tools)
                )
            with Timer() as timer:
                response = model.invoke(messages)
            result = self._interpret(response)
        except Exception:
            logger.exception("Agent execution failed for %s", agent_name)
            return ExecutionResult(reply_text=ERROR_REPLY, failed=True)

        logger.info(
            "%s replied in %.1fms (document=%s, sources=%d)",
            agent_name,
            timer.elapsed_ms,
            result.document.document_type.value if result.document else None,
            len(result.sources),
        )
        return result

    def _interpret(self, response: Any) -> ExecutionResult:
        sources = extract_sources(response)

        document = self._extract_document(response)
        if document is not None:
            reply = DOCUMENT_CONFIRMATION.format(doc_type=document.document_type.value)
            return ExecutionResult(reply_text=reply, document=document, sources=sources)

        text = message_text(response).strip()
        return ExecutionResult(reply_text=text or EMPTY_REPLY, sources=sources)

    def _extract_document(self, response: Any) -> GeneratedDocument | None:
        tool_calls = _tool_calls(response)
        if not tool_calls:
            return None
        # Only the first call of a turn is honored.
        call = tool_calls[0]
        if call.get("name") != DOCUMENT_TOOL:
            logger.warning("Ignoring unsupported tool call %r", call.get("name"))
            return None
        try:
            return self.tool_registry.execute(DOCUMENT_TOOL, dict(call.get("args") or {}))
        except ValidationError:
            logger.warning("Rejected malformed %s arguments", DOCUMENT_TOOL, exc_info=True)
            return None


def extract_sources(response: Any) -> tuple[CitationSource, ...]:
    """Flatten grounding chunks into citation sources, keeping order."""
    metadata = getattr(response, "response_metadata", None) or {}
    grounding = metadata.get("grounding_metadata") or metadata.get("groundingMetadata")
    if not isinstance(grounding, Mapping):
        return ()
    chunks = grounding.get("grounding_chunks") or grounding.get("groundingChunks") or []

    sources: list[CitationSource] = []
    for chunk in chunks:
        web = chunk.get("web") if isinstance(chunk, Mapping) else None
        if not isinstance(web, Mapping):
            continue
        sources.append(
            CitationSource(uri=str(web.get("uri") or ""), title=str(web.get("title") or ""))
        )
    return tuple(sources)


def _tool_calls(response: Any) -> list[dict[str, Any]]:
    calls = getattr(response, "tool_calls", None) or []
    return [call for call in calls if isinstance(call, Mapping)]
