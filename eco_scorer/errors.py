"""
Exception types raised across the eco scorer.

Two failure kinds reach callers of a prediction and must stay distinguishable:

  ``ValidationError``     the input is wrong (unknown categorical value,
                          negative quantity, malformed date).  Not retryable;
                          the caller must fix the request.
  ``ServiceUnavailable``  no model is published yet, or loading failed.
                          Retryable; the caller should back off.

Persistence failures are not wrapped: ``sqlite3.Error`` propagates unchanged
so a failed history append fails the whole request.
"""

from __future__ import annotations

from typing import Any, Optional

import pydantic


class EcoScorerError(Exception):
    """Base class for all eco scorer errors."""


class ValidationError(EcoScorerError, ValueError):
    """Input rejected before inference.

    Attributes:
        field: Name of the offending feature or request field.
        value: The rejected value, if any.
    """

    def __init__(self, field: str, message: str, value: Optional[Any] = None) -> None:
        self.field = field
        self.value = value
        super().__init__(f"{field}: {message}")

    @classmethod
    def from_pydantic(cls, exc: pydantic.ValidationError) -> "ValidationError":
        """Wrap the first error of a pydantic ``ValidationError``."""
        first = exc.errors()[0]
        loc = first.get("loc") or ("input",)
        return cls(str(loc[0]), first.get("msg", "invalid value"), first.get("input"))


class ServiceUnavailable(EcoScorerError, RuntimeError):
    """The eco-score model is not loaded (yet, or after a failed load)."""

    retryable = True
