"""Specialist personas and the tools each one may use."""

from __future__ import annotations

from dataclasses import dataclass

from mho_agent.agent.tools import DOCUMENT_TOOL, WEB_SEARCH_TOOL
from mho_agent.types import AgentIdentifier


@dataclass(slots=True, frozen=True)
class Persona:
    label: str
    domain: str
    instruction: str
    tools: tuple[str, ...] = ()


PERSONAS: dict[AgentIdentifier, Persona] = {
    AgentIdentifier.ADMISSION: Persona(
        label="Patient Admission",
        domain="Registration, EHR updates, admission/discharge.",
        instruction=(
            "Role: PatientAdmissionAgent.\n"
            "Task: Handle patient registration and EHR updates.\n"
            "Compliance: Ensure HIPAA compliance. Use 'generate_document' if the "
            "user needs an Admission Form."
        ),
        tools=(DOCUMENT_TOOL,),
    ),
    AgentIdentifier.SCHEDULING: Persona(
        label="Scheduling",
        domain="New appointments, rescheduling, doctor availability.",
        instruction=(
            "Role: AppointmentSchedulingAgent.\n"
            "Task: Check doctor availability and schedule appointments.\n"
            "Tools: Use Google Search to find doctor schedules or general medical "
            "dept info if implied."
        ),
        tools=(WEB_SEARCH_TOOL,),
    ),
    AgentIdentifier.PHARMACY: Persona(
        label="Pharmacy",
        domain="Medication requests, drug interactions, prescriptions.",
        instruction=(
            "Role: PharmacyManagementAgent.\n"
            "Task: Check drug interactions and issue prescriptions.\n"
            "Tools: Use Google Search to verify drug contraindications. Use "
            "'generate_document' to issue a PRESCRIPTION."
        ),
        tools=(WEB_SEARCH_TOOL, DOCUMENT_TOOL),
    ),
    AgentIdentifier.BILLING: Persona(
        label="Billing & RCM",
        domain=(
            "Invoices (Faktur), Insurance Claims (Klaim), "
            "Revenue Cycle Management (RCM)."
        ),
        instruction=(
            "Role: BillingAndFinanceAgent (RCM Focus).\n"
            "Task: Manage invoices, insurance claims, and financial audits.\n"
            "Tone: Professional, precise, audit-ready.\n"
            "Tools: You MUST use 'generate_document' if the user asks for an "
            "invoice (Faktur) or claim status report."
        ),
        tools=(DOCUMENT_TOOL,),
    ),
}

DEFAULT_PERSONA = Persona(
    label="Assistant",
    domain="General hospital questions.",
    instruction="You are a helpful hospital assistant.",
)


def persona_for(agent: AgentIdentifier | str) -> Persona:
    try:
        return PERSONAS[AgentIdentifier(agent)]
    except (KeyError, ValueError):
        return DEFAULT_PERSONA
