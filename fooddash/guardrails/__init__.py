"""Guardrails for Fooddash request input."""

from fooddash.guardrails.input_validator import (
    InputValidator,
    require_session_token,
    require_user_input,
)

__all__ = [
    "InputValidator",
    "require_session_token",
    "require_user_input",
]
