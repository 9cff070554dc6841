"""Configuration models for the MHO delegation core."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field

DEFAULT_MODEL = "gemini-2.5-flash"

DEFAULT_WELCOME = (
    "Welcome to MHO (Manage Hospital Operations). I am the Central Manager. "
    "How can I assist you today? (e.g., 'Check my insurance claim', "
    "'Schedule a cardiology appointment')"
)


class BackendConfig(BaseModel):
    """Credential and model identifier for the generation backend."""

    api_key: str | None = None
    model: str = Field(default=DEFAULT_MODEL, min_length=1)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)


class RouterConfig(BaseModel):
    """Sampling for the classification phase; kept low for stable routing."""

    temperature: float = Field(default=0.1, ge=0.0, le=1.0)


class ExecutorConfig(BaseModel):
    """Sampling for the specialist phase."""

    temperature: float = Field(default=0.3, ge=0.0, le=1.0)


class ControllerConfig(BaseModel):
    """Turn controller behavior."""

    handoff_delay_seconds: float = Field(default=0.0, ge=0.0)
    welcome_message: str = DEFAULT_WELCOME


def load_backend_config() -> BackendConfig:
    api_key = os.getenv("GOOGLE_API_KEY") or os.getenv("API_KEY")
    return BackendConfig(api_key=api_key, model=os.getenv("MHO_MODEL", DEFAULT_MODEL))
