"""Plain-text rendering of documents and conversation history."""

from __future__ import annotations

from collections.abc import Iterable

from mho_agent.types import ChatMessage, GeneratedDocument

_HEADER = "HOSPITAL MHO SYSTEM"


def render_transcript(messages: Iterable[ChatMessage]) -> str:
    """Render messages as `sender: text` lines, oldest first."""
    return "\n".join(f"{message.sender_label}: {message.text}" for message in messages)


def render_document(document: GeneratedDocument) -> str:
    lines = [
        f"{document.document_type.value} | {_HEADER}",
        document.title,
        "-" * max(len(document.title), 8),
    ]
    for key, value in document.content.items():
        lines.append(f"{_field_label(key)}: {value}")
    lines.append("")
    lines.append(f"COMPLIANCE NOTE: {document.compliance_footer}")
    return "\n".join(lines)


def _field_label(key: str) -> str:
    label = key.replace("_", " ").strip()
    return label[:1].upper() + label[1:]
