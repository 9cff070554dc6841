"""Deterministic router and executor used when no backend is configured."""

from __future__ import annotations

import re

from mho_agent.agent.personas import persona_for
from mho_agent.agent.router import FALLBACK_AGENT
from mho_agent.types import AgentIdentifier, DelegationDecision, ExecutionResult

_KEYWORDS: dict[AgentIdentifier, tuple[str, ...]] = {
    AgentIdentifier.ADMISSION: (
        "admission", "admit", "register", "registration", "discharge", "ehr",
        "patient record", "bed",
    ),
    AgentIdentifier.SCHEDULING: (
        "appointment", "schedule", "reschedule", "availability", "available",
        "booking", "book", "slot", "doctor",
    ),
    AgentIdentifier.PHARMACY: (
        "prescription", "prescribe", "medication", "medicine", "drug", "dose",
        "dosage", "pharmacy", "interaction",
    ),
    AgentIdentifier.BILLING: (
        "invoice", "faktur", "bill", "billing", "claim", "klaim", "insurance",
        "payment", "revenue", "rcm", "cost",
    ),
}

OFFLINE_REPLY = (
    "{label} received your request, but the generation backend is not "
    "configured. Set GOOGLE_API_KEY to enable full responses."
)


class KeywordRouter:
    """Scores each specialist by keyword hits in the request.

    Keeps the `AgentRouter.classify` contract: the result is always a
    specialist. No hits or a tie for the top score yields `FALLBACK_AGENT`
    flagged as a fallback.
    """

    def classify(self, request_text: str) -> DelegationDecision:
        text = request_text.lower()
        scores = {
            agent: sum(1 for keyword in keywords if _contains(text, keyword))
            for agent, keywords in _KEYWORDS.items()
        }
        best = max(scores.values())
        leaders = [agent for agent, score in scores.items() if score == best]
        if best == 0 or len(leaders) > 1:
            return DelegationDecision(
                agent=FALLBACK_AGENT,
                rationale="Fallback: no unambiguous keyword match.",
                fallback=True,
            )
        agent = leaders[0]
        return DelegationDecision(
            agent=agent,
            rationale=f"Matched {best} {persona_for(agent).label.lower()} keyword(s).",
        )


class OfflineExecutor:
    """Answers with a fixed notice; never produces documents or sources."""

    def run(
        self,
        agent: AgentIdentifier | str,
        request_text: str,
        history_text: str = "",
    ) -> ExecutionResult:
        del request_text, history_text  # nothing to generate without a backend.
        return ExecutionResult(reply_text=OFFLINE_REPLY.format(label=persona_for(agent).label))


def _contains(text: str, keyword: str) -> bool:
    return re.search(rf"\b{re.escape(keyword)}\b", text) is not None
