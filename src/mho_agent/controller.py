"""Per-session turn orchestration: classify, hand off, execute, record."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field

from mho_agent.agent.executor import SpecialistExecutor
from mho_agent.agent.fallback import KeywordRouter, OfflineExecutor
from mho_agent.agent.router import AgentRouter
from mho_agent.config import ControllerConfig
from mho_agent.errors import EmptyRequestError, TurnInProgressError
from mho_agent.obs.audit import AuditLog
from mho_agent.render import render_transcript
from mho_agent.types import USER_SENDER, AgentIdentifier, ChatMessage

logger = logging.getLogger(__name__)

TURN_ERROR_REPLY = (
    "I apologize, but I encountered a secure connection error. Please try again."
)


@dataclass(slots=True)
class SessionState:
    """Everything a presentation layer needs to draw one session.

    `messages` and `audit` only ever grow; `active_agent` tracks which agent
    is currently working on the turn.
    """

    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    messages: list[ChatMessage] = field(default_factory=list)
    audit: AuditLog = field(default_factory=AuditLog)
    active_agent: AgentIdentifier = AgentIdentifier.ORCHESTRATOR

    def append(self, message: ChatMessage) -> ChatMessage:
        self.messages.append(message)
        return message

    def snapshot(self) -> tuple[ChatMessage, ...]:
        return tuple(self.messages)


class TurnController:
    """Runs user turns for a single session, one at a time.

    The in-flight slot is a non-blocking lock: a second `submit` while a turn
    is running is rejected with `TurnInProgressError`, never queued. Empty
    input is rejected with `EmptyRequestError`. Both rejections happen before
    any state is touched.
    """

    def __init__(
        self,
        *,
        router: AgentRouter | KeywordRouter,
        executor: SpecialistExecutor | OfflineExecutor,
        config: ControllerConfig | None = None,
        state: SessionState | None = None,
    ) -> None:
        self.router = router
        self.executor = executor
        self.config = config or ControllerConfig()
        self._slot = threading.Lock()
        if state is None:
            state = SessionState()
            if self.config.welcome_message:
                state.append(
                    ChatMessage(
                        role="agent",
                        text=self.config.welcome_message,
                        sender=AgentIdentifier.ORCHESTRATOR,
                    )
                )
        self.state = state

    @property
    def busy(self) -> bool:
        return self._slot.locked()

    def submit(self, text: str) -> ChatMessage:
        """Process one user turn and return the agent message it produced."""
        if not text or not text.strip():
            raise EmptyRequestError()
        if not self._slot.acquire(blocking=False):
            raise TurnInProgressError()
        try:
            return self._run_turn(text)
        finally:
            self._slot.release()

    def _run_turn(self, text: str) -> ChatMessage:
        state = self.state
        history = render_transcript(state.messages)
        state.append(ChatMessage(role="user", text=text, sender=USER_SENDER))
        state.active_agent = AgentIdentifier.ORCHESTRATOR

        try:
            decision = self.router.classify(text)
            state.audit.record(
                AgentIdentifier.ORCHESTRATOR, f"Delegated to {decision.agent.value}"
            )

            if self.config.handoff_delay_seconds:
                time.sleep(self.config.handoff_delay_seconds)
            state.active_agent = decision.agent

            result = self.executor.run(decision.agent, text, history)
            reply = state.append(
                ChatMessage(
                    role="agent",
                    text=result.reply_text,
                    sender=decision.agent,
                    document=result.document,
                    sources=result.sources,
                )
            )
            if result.document is not None:
                action = f"Generated {result.document.document_type.value}"
            else:
                action = "Responded to query"
            state.audit.record(decision.agent, action)
            return reply
        except Exception:
            logger.exception("Error processing request in session %s", state.session_id)
            state.active_agent = AgentIdentifier.ORCHESTRATOR
            return state.append(
                ChatMessage(
                    role="agent",
                    text=TURN_ERROR_REPLY,
                    sender=AgentIdentifier.ORCHESTRATOR,
                )
            )
