"""Immutable per-call configuration for the evaluators."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class EvaluatorConfig(BaseModel):
    """Flags and caps for one evaluation.

    Instances are frozen; derive variants with :meth:`with_` instead of
    mutating a shared evaluator.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    allow_partial: bool = False
    """Treat unknown operands as identity elements and drop unknown array elements."""

    allow_field_initializers: bool = False
    """Trust initializers of non-final fields too."""

    allow_dereference: bool = True
    """Let the resource classifier unwrap accessor calls like ``getString(R.string.x)``."""

    max_depth: int = Field(default=64, ge=1)
    max_array_elements: int = Field(default=20, ge=0)
    max_array_length: int = Field(default=30, ge=0)

    def with_(self, **changes) -> EvaluatorConfig:
        """Return a validated copy with *changes* applied."""
        return type(self).model_validate({**self.model_dump(), **changes})


DEFAULT_CONFIG = EvaluatorConfig()
