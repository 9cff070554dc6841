"""Built-in tools offered to the specialist agents."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field

from mho_agent.agent.registry import ToolRegistry, ToolSpec
from mho_agent.types import DocumentType, GeneratedDocument

DOCUMENT_TOOL = "generate_document"
WEB_SEARCH_TOOL = "web_search"


class DocumentToolInput(BaseModel):
    docType: DocumentType = Field(
        description="Type of document: INVOICE, PRESCRIPTION, ADMISSION_FORM, MEMO"
    )
    title: str = Field(description="Title of the document")
    fields: dict[str, Any] = Field(
        description=(
            "Key-value pairs of the document content "
            "(e.g., Patient Name, Cost, Drug Name)"
        )
    )
    complianceNote: str = Field(description="HIPAA or Audit compliance footer note")


def build_document(input_data: DocumentToolInput) -> GeneratedDocument:
    return GeneratedDocument(
        document_type=input_data.docType,
        title=input_data.title,
        content={key: _scalar(value) for key, value in input_data.fields.items()},
        compliance_footer=input_data.complianceNote,
    )


def register_builtin_tools(registry: ToolRegistry) -> None:
    """Register the tool set used by the specialist personas.

    Tools:
    - `generate_document`: structured hospital document (invoice,
      prescription, admission form, memo).
    - `web_search`: Gemini's native Google Search grounding; executed by the
      provider, results come back as grounding metadata.
    """

    registry.register(
        ToolSpec(
            name=DOCUMENT_TOOL,
            description=(
                "Generates an official hospital document (Invoice, Prescription, "
                "Admission Form). REQUIRED for any formal request."
            ),
            args_schema=DocumentToolInput,
            handler=build_document,
            tags=["document"],
        )
    )
    registry.register_native(WEB_SEARCH_TOOL, {"google_search": {}})


def default_registry() -> ToolRegistry:
    registry = ToolRegistry()
    register_builtin_tools(registry)
    return registry


def _scalar(value: Any) -> str | int | float | bool:
    """Collapse a field value to a scalar: null to "", containers to JSON."""
    if value is None:
        return ""
    if isinstance(value, (str, int, float, bool)):
        return value
    return json.dumps(value, ensure_ascii=False, default=str)
