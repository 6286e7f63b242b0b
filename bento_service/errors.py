"""
Exception types shared by the ranking engine, layout composer and override store.
"""

from typing import List, Optional


class BentoError(Exception):
    """Base class for all bento feed errors."""


class InvalidInputError(BentoError, ValueError):
    """Malformed post records, duplicate/unknown ids or bad size classes.

    Raised before any ranking or persistence work starts so a bad catalog
    never produces a partially ordered feed.
    """

    def __init__(self, message: str, details: Optional[List[str]] = None):
        super().__init__(message)
        self.details = list(details or [])

    def to_dict(self) -> dict:
        return {"error": str(self), "details": self.details}


class OverrideStoreError(BentoError):
    """The manual override store could not be read or written."""


class ScorerUnavailableError(BentoError):
    """The recommendation scorer could not be reached or answered garbage."""
