"""
Error taxonomy for the dispatch core.

Wiring defects (``WorkflowWiringError`` / ``UnknownAction``) are programming
errors: they are logged as critical and never shown raw to the user.
``ValidationError`` keeps the user on the same step.  ``CollaboratorError``
subclasses are raised by the storage, crypto and chain adapters; the engine
reports them and resolves the pending action to idle.
"""

from __future__ import annotations


class TradebotError(Exception):
    """Base class for every error raised by the dispatch core."""


# ---------------------------------------------------------------------------
# Internal wiring defects
# ---------------------------------------------------------------------------

class WorkflowWiringError(TradebotError):
    """The registry or a step handler broke its declared contract."""


class UnknownAction(WorkflowWiringError):
    """An action or step name has no registered definition."""

    def __init__(self, name: str):
        super().__init__(f"No registered action or step named {name!r}")
        self.name = name


# ---------------------------------------------------------------------------
# User-facing classification outcomes
# ---------------------------------------------------------------------------

class UnknownCallback(TradebotError):
    def __init__(self, token: str):
        super().__init__(f"Unknown callback token {token!r}")
        self.token = token


class UnknownCommand(TradebotError):
    def __init__(self, name: str):
        super().__init__(f"Unknown command {name!r}")
        self.name = name


class ValidationError(TradebotError):
    """Input rejected by a collecting step; the step stays pending."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StaleConfirmation(TradebotError):
    """A confirm/cancel tap arrived with no confirmation gate pending."""


# ---------------------------------------------------------------------------
# Collaborator failures (non-retryable at this layer)
# ---------------------------------------------------------------------------

class CollaboratorError(TradebotError):
    """Base for failures reported by an external collaborator.

    ``user_message`` is safe to show to the user verbatim.
    """

    default_message = "Something went wrong. Please try again later."

    def __init__(self, message: str, user_message: str | None = None):
        super().__init__(message)
        self.user_message = user_message or self.default_message


class StorageUnavailable(CollaboratorError):
    default_message = "Storage is temporarily unavailable. Please try again later."


class CryptoError(CollaboratorError):
    default_message = "The wallet operation failed. Please check your input and try again."


class ChainError(CollaboratorError):
    default_message = "The network request failed. Please try again later."
