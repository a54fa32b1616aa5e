"""
Error taxonomy for the allergen safety engine.

- EmptyTextError: nothing to scan; callers skip the item and carry on.
- InvalidLexiconError: malformed reference data; fatal when loading.

Finding no safe substitution is not an error: the recommender returns an empty
list and callers surface it as a manual-avoidance recommendation.
"""

from __future__ import annotations

from typing import Optional


class AllerGuardError(Exception):
    """Base class for engine errors."""


class EmptyTextError(AllerGuardError, ValueError):
    """Raised when a blank or whitespace-only text is passed for scanning."""

    def __init__(self, item_name: Optional[str] = None):
        self.item_name = item_name
        if item_name:
            message = f"No text to scan for item '{item_name}'"
        else:
            message = "No text to scan"
        super().__init__(message)


class InvalidLexiconError(AllerGuardError, ValueError):
    """Raised when allergen or substitution reference data cannot be loaded."""

    def __init__(self, message: str, entry: Optional[str] = None):
        self.entry = entry
        if entry:
            message = f"{message} (entry: {entry})"
        super().__init__(message)
