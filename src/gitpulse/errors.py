"""Exception hierarchy.

Pure layers return Result values; these are raised only at Effect boundaries
and in the imperative shell.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ValidationError


class GitPulseError(Exception):
    """Base exception for the package."""


class ValidationAggregateError(GitPulseError):
    """Every violation found in a summary request, reported together."""

    def __init__(self, errors: list[ValidationError] | tuple[ValidationError, ...]) -> None:
        self.errors = tuple(errors)
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in self.errors))


class SummaryError(GitPulseError):
    """User-facing failure of the summary workflow."""


class ConfigError(GitPulseError):
    """Configuration could not be built or failed validation."""
