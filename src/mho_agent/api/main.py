"""FastAPI entrypoint for session, chat and audit endpoints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from mho_agent.agent.executor import SpecialistExecutor
from mho_agent.agent.fallback import KeywordRouter, OfflineExecutor
from mho_agent.agent.personas import PERSONAS
from mho_agent.agent.router import AgentRouter
from mho_agent.config import (
    BackendConfig,
    ControllerConfig,
    ExecutorConfig,
    RouterConfig,
    load_backend_config,
)
from mho_agent.controller import TurnController
from mho_agent.errors import EmptyRequestError, TurnInProgressError
from mho_agent.render import render_document
from mho_agent.types import SPECIALISTS, AuditEntry, ChatMessage

logger = logging.getLogger(__name__)


class MessageRequest(BaseModel):
    text: str


class SessionStore:
    """In-process session registry; nothing outlives the process.

    Holds at most `max_sessions`; creating one more evicts the oldest idle
    session.
    """

    def __init__(
        self,
        backend: BackendConfig,
        *,
        controller_config: ControllerConfig | None = None,
        max_sessions: int = 100,
    ) -> None:
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.backend = backend
        self.controller_config = controller_config or ControllerConfig()
        self.max_sessions = max_sessions
        self._sessions: dict[str, TurnController] = {}

    @property
    def mode(self) -> str:
        return "gemini" if self.backend.configured else "deterministic"

    def create(self) -> TurnController:
        if self.backend.configured:
            router: AgentRouter | KeywordRouter = AgentRouter.from_backend(
                self.backend, RouterConfig()
            )
            executor: SpecialistExecutor | OfflineExecutor = SpecialistExecutor.from_backend(
                self.backend, ExecutorConfig()
            )
        else:
            router = KeywordRouter()
            executor = OfflineExecutor()
        controller = TurnController(
            router=router, executor=executor, config=self.controller_config
        )
        self._evict_idle()
        self._sessions[controller.state.session_id] = controller
        logger.info("Created session %s (%s)", controller.state.session_id, self.mode)
        return controller

    def get(self, session_id: str) -> TurnController:
        controller = self._sessions.get(session_id)
        if controller is None:
            raise KeyError(f"Session not found: {session_id}")
        return controller

    def delete(self, session_id: str) -> None:
        controller = self.get(session_id)
        if controller.busy:
            raise TurnInProgressError()
        del self._sessions[session_id]
        logger.info("Deleted session %s", session_id)

    def __len__(self) -> int:
        return len(self._sessions)

    def _evict_idle(self) -> None:
        # Oldest first; sessions with a turn in flight are skipped.
        for session_id in list(self._sessions):
            if len(self._sessions) < self.max_sessions:
                return
            if not self._sessions[session_id].busy:
                del self._sessions[session_id]
                logger.info("Evicted session %s", session_id)


def message_payload(message: ChatMessage) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": message.id,
        "role": message.role,
        "text": message.text,
        "sender": message.sender_label,
        "timestamp": message.timestamp.isoformat(),
        "document": None,
        "sources": [{"uri": s.uri, "title": s.title} for s in message.sources],
    }
    if message.document is not None:
        payload["document"] = {
            "type": message.document.document_type.value,
            "title": message.document.title,
            "content": dict(message.document.content),
            "footer": message.document.compliance_footer,
            "rendered": render_document(message.document),
        }
    return payload


def audit_payload(entry: AuditEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "timestamp": entry.timestamp.isoformat(),
        "agent": entry.agent.value,
        "action": entry.action,
        "status": entry.status.value,
    }


def create_app(store: SessionStore | None = None) -> FastAPI:
    store = store or SessionStore(load_backend_config())
    app = FastAPI(title="MHO Hospital Operations Agent", version="0.1.0")
    app.state.sessions = store

    def _controller(session_id: str) -> TurnController:
        try:
            return store.get(session_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {
            "status": "ok",
            "llm_configured": store.backend.configured,
            "router_mode": store.mode,
            "session_count": len(store),
        }

    @app.get("/agents")
    def agents() -> dict[str, Any]:
        return {
            "items": [
                {
                    "id": agent.value,
                    "label": PERSONAS[agent].label,
                    "domain": PERSONAS[agent].domain,
                    "tools": list(PERSONAS[agent].tools),
                }
                for agent in SPECIALISTS
            ]
        }

    @app.post("/sessions")
    def create_session() -> dict[str, Any]:
        controller = store.create()
        return {
            "session_id": controller.state.session_id,
            "active_agent": controller.state.active_agent.value,
            "messages": [message_payload(m) for m in controller.state.snapshot()],
        }

    @app.get("/sessions/{session_id}/messages")
    def list_messages(session_id: str) -> dict[str, Any]:
        controller = _controller(session_id)
        return {
            "active_agent": controller.state.active_agent.value,
            "busy": controller.busy,
            "items": [message_payload(m) for m in controller.state.snapshot()],
        }

    @app.post("/sessions/{session_id}/messages")
    def post_message(session_id: str, request: MessageRequest) -> dict[str, Any]:
        controller = _controller(session_id)
        try:
            reply = controller.submit(request.text)
        except EmptyRequestError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except TurnInProgressError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return {
            "active_agent": controller.state.active_agent.value,
            "reply": message_payload(reply),
        }

    @app.delete("/sessions/{session_id}")
    def delete_session(session_id: str) -> dict[str, Any]:
        try:
            store.delete(session_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except TurnInProgressError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return {"session_id": session_id, "deleted": True}

    @app.get("/sessions/{session_id}/audit")
    def audit(session_id: str, limit: int = 50) -> dict[str, Any]:
        controller = _controller(session_id)
        return {"items": [audit_payload(e) for e in controller.state.audit.list_recent(limit)]}

    return app


app = create_app()
