# Error taxonomy and centralized error handling.

import logging
from typing import Optional

import streamlit as st

logger = logging.getLogger(__name__)


class CoachError(Exception):
    """Base class for lookup, generation and persistence failures."""


class InvalidInputError(CoachError):
    """Empty or missing term; raised before any network call."""


class BackendError(CoachError):
    """Generation backend unreachable, rejected the call, or returned bad JSON."""

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.details = details if details is not None else message


class ResponseShapeError(BackendError):
    """Backend JSON parsed, but matches neither the candidates nor the detail shape."""


class PersistenceError(CoachError):
    """Saved-word store read or write failure."""


class BackgroundFetchError(CoachError):
    """Failure during opportunistic candidate pre-fetch. Logged, never shown."""


class ErrorHandler:
    """Centralized error handling for consistent user feedback."""

    @staticmethod
    def handle(error: Exception, context: str, show_user: bool = True) -> None:
        """Handle errors consistently with logging and user feedback."""
        logger.error("%s: %s", context, error, exc_info=True)
        if show_user:
            st.error(f"❌ {context}")

    @staticmethod
    def log_background(error: Exception, context: str) -> None:
        """Log a failure from work the user did not start. Never shown in the UI."""
        logger.warning("%s: %s", context, error)
