"""Shared domain models."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal


class AgentIdentifier(str, Enum):
    """Closed set of agents known to the system."""

    ORCHESTRATOR = "Central Manager"
    ADMISSION = "PatientAdmissionAgent"
    SCHEDULING = "AppointmentSchedulingAgent"
    PHARMACY = "PharmacyManagementAgent"
    BILLING = "BillingAndFinanceAgent"


SPECIALISTS: tuple[AgentIdentifier, ...] = (
    AgentIdentifier.ADMISSION,
    AgentIdentifier.SCHEDULING,
    AgentIdentifier.PHARMACY,
    AgentIdentifier.BILLING,
)

USER_SENDER = "User"


class DocumentType(str, Enum):
    INVOICE = "INVOICE"
    PRESCRIPTION = "PRESCRIPTION"
    ADMISSION_FORM = "ADMISSION_FORM"
    MEMO = "MEMO"


class AuditStatus(str, Enum):
    SUCCESS = "SUCCESS"
    PENDING = "PENDING"
    DENIED = "DENIED"


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True, frozen=True)
class DelegationDecision:
    """Router output for one user turn."""

    agent: AgentIdentifier
    rationale: str
    fallback: bool = False


@dataclass(slots=True, frozen=True)
class GeneratedDocument:
    """A structured hospital document produced by the document tool."""

    document_type: DocumentType
    title: str
    content: dict[str, Any]
    compliance_footer: str


@dataclass(slots=True, frozen=True)
class CitationSource:
    uri: str
    title: str


@dataclass(slots=True, frozen=True)
class ExecutionResult:
    """Interpreted outcome of a single specialist call."""

    reply_text: str
    document: GeneratedDocument | None = None
    sources: tuple[CitationSource, ...] = ()
    failed: bool = False


@dataclass(slots=True, frozen=True)
class ChatMessage:
    """One entry of the session conversation log."""

    role: Literal["user", "agent"]
    text: str
    sender: AgentIdentifier | str
    id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=_utcnow)
    document: GeneratedDocument | None = None
    sources: tuple[CitationSource, ...] = ()

    @property
    def sender_label(self) -> str:
        if isinstance(self.sender, AgentIdentifier):
            return self.sender.value
        return str(self.sender)


@dataclass(slots=True, frozen=True)
class AuditEntry:
    """Immutable audit record for a delegation or an execution."""

    agent: AgentIdentifier
    action: str
    status: AuditStatus = AuditStatus.SUCCESS
    id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass(slots=True)
class ToolTrace:
    """Trace record for an executed tool call."""

    name: str
    input_payload: dict[str, Any]
    output_preview: str
    latency_ms: float
