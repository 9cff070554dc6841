"""Chat model construction and response helpers."""

from __future__ import annotations

from typing import Any

from mho_agent.config import BackendConfig


def create_chat_model(
    backend: BackendConfig,
    *,
    temperature: float,
    json_output: bool = False,
) -> Any:
    """Build a Gemini chat model, or return None without a credential."""
    if not backend.configured:
        return None

    from langchain_google_genai import ChatGoogleGenerativeAI

    kwargs: dict[str, Any] = {}
    if json_output:
        kwargs["response_mime_type"] = "application/json"
    return ChatGoogleGenerativeAI(
        model=backend.model,
        google_api_key=backend.api_key,
        temperature=temperature,
        **kwargs,
    )


def message_text(message: Any) -> str:
    """Flatten a chat model reply into plain text."""
    if message is None:
        return ""
    if isinstance(message, str):
        return message
    if isinstance(message, dict):
        content = message.get("content", "")
    else:
        content = getattr(message, "content", "")
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, dict):
                if item.get("type", "text") == "text" and "text" in item:
                    parts.append(str(item["text"]))
            else:
                parts.append(str(item))
        return "".join(parts).strip()
    return str(content or "")
