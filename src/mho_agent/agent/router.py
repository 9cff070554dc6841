"""Orchestrator phase: pick the one specialist that handles a request."""

from __future__ import annotations

import logging
import re
from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import BaseModel, ValidationError

from mho_agent.agent.llm import create_chat_model, message_text
from mho_agent.agent.personas import PERSONAS
from mho_agent.config import BackendConfig, RouterConfig
from mho_agent.obs.audit import Timer
from mho_agent.types import SPECIALISTS, AgentIdentifier, DelegationDecision

logger = logging.getLogger(__name__)

FALLBACK_AGENT = AgentIdentifier.ADMISSION
FALLBACK_RATIONALE = "Fallback due to error."

_FENCE = re.compile(r"^```(?:json)?\s*(?P<body>.*?)\s*```$", flags=re.DOTALL)


def _build_router_prompt() -> str:
    roster = "\n".join(
        f"{idx}. {agent.value}: {PERSONAS[agent].domain}"
        for idx, agent in enumerate(SPECIALISTS, start=1)
    )
    choices = " | ".join(f'"{agent.value}"' for agent in SPECIALISTS)
    return f"""
ROLE: You are the Central Manager (Orchestrator) for the MHO (Manage Hospital Operations) system.
GOAL: Analyze the user request and delegate it to the single most appropriate Sub-Agent.

SUB-AGENTS:
{roster}

OUTPUT: Return a JSON object ONLY.
{{
  "agent": {choices},
  "reasoning": "Brief explanation of why"
}}
""".strip()


_ROUTER_PROMPT = _build_router_prompt()


class RoutingPayload(BaseModel):
    agent: str
    reasoning: str = ""


class RoutingError(ValueError):
    """Router reply could not be turned into a specialist."""


class AgentRouter:
    """Classifies a request into exactly one specialist.

    The router never raises for backend or decoding problems: every failure
    collapses to `FALLBACK_AGENT` with `fallback=True`, so the execution
    phase always receives a valid identifier. `llm` is expected to be
    configured for JSON output at a low temperature (see
    `create_chat_model(..., json_output=True)`).
    """

    def __init__(self, *, llm: Any, config: RouterConfig | None = None) -> None:
        self.llm = llm
        self.config = config or RouterConfig()

    @classmethod
    def from_backend(
        cls, backend: BackendConfig, config: RouterConfig | None = None
    ) -> "AgentRouter":
        config = config or RouterConfig()
        llm = create_chat_model(backend, temperature=config.temperature, json_output=True)
        if llm is None:
            raise ValueError("Backend credential is not configured.")
        return cls(llm=llm, config=config)

    def classify(self, request_text: str) -> DelegationDecision:
        messages = [SystemMessage(content=_ROUTER_PROMPT), HumanMessage(content=request_text)]
        try:
            with Timer() as timer:
                response = self.llm.invoke(messages)
            decision = parse_decision(message_text(response))
        except Exception:
            logger.warning("Orchestration failed, falling back to %s", FALLBACK_AGENT.value, exc_info=True)
            return DelegationDecision(agent=FALLBACK_AGENT, rationale=FALLBACK_RATIONALE, fallback=True)

        logger.info(
            "Delegated to %s in %.1fms: %s",
            decision.agent.value,
            timer.elapsed_ms,
            decision.rationale,
        )
        return decision


def parse_decision(raw: str) -> DelegationDecision:
    """Decode a router reply, raising `RoutingError` on anything unusable."""
    text = raw.strip()
    if not text:
        raise RoutingError("No response from orchestrator")
    fenced = _FENCE.match(text)
    if fenced:
        text = fenced.group("body")

    try:
        payload = RoutingPayload.model_validate_json(text)
    except ValidationError as exc:
        raise RoutingError(f"Malformed orchestrator response: {raw[:120]!r}") from exc

    agent = _resolve_specialist(payload.agent)
    if agent is None:
        raise RoutingError(f"Unknown agent: {payload.agent!r}")
    return DelegationDecision(agent=agent, rationale=payload.reasoning.strip())


def _resolve_specialist(value: str) -> AgentIdentifier | None:
    candidate = value.strip()
    for agent in SPECIALISTS:
        if candidate in (agent.value, agent.name):
            return agent
    return None
