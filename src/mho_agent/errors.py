"""Exceptions raised at the turn controller boundary."""

from __future__ import annotations


class TurnRejectedError(RuntimeError):
    """A turn was refused before any session state changed."""


class EmptyRequestError(TurnRejectedError):
    def __init__(self) -> None:
        super().__init__("Request text is empty.")


class TurnInProgressError(TurnRejectedError):
    def __init__(self) -> None:
        super().__init__("A turn is already being processed for this session.")
