"""Input validation guardrails for search and autocomplete requests."""

import logging
import re

from fooddash.errors import ValidationError
from fooddash.models.place import Coordinate

logger = logging.getLogger(__name__)


class InputValidator:
    """Checks caller-supplied query values before any outbound call is made."""

    # Patterns that indicate potential abuse or injected markup
    BLOCKED_PATTERNS = [
        r"<script",
        r"javascript:",
        r"onclick",
        r"onerror",
        r"eval\(",
        r"exec\(",
    ]

    MAX_INPUT_LENGTH = 200
    MAX_SESSION_TOKEN_LENGTH = 128

    @staticmethod
    def validate_user_input(input_text: str | None) -> tuple[bool, str | None]:
        """Validate free text typed by the user.

        Args:
            input_text: Raw query parameter value

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not input_text or not input_text.strip():
            logger.warning("Guardrail triggered: Empty input detected")
            return False, "Input is required and cannot be empty"

        if len(input_text) > InputValidator.MAX_INPUT_LENGTH:
            logger.warning(
                f"Guardrail triggered: Input too long "
                f"({len(input_text)} > {InputValidator.MAX_INPUT_LENGTH} chars)"
            )
            return False, (
                f"Input too long (max {InputValidator.MAX_INPUT_LENGTH} characters)"
            )

        lowered = input_text.lower()
        for pattern in InputValidator.BLOCKED_PATTERNS:
            if re.search(pattern, lowered):
                logger.warning(
                    f"Guardrail triggered: Suspicious pattern detected ({pattern})"
                )
                return False, "Input contains suspicious content"

        return True, None

    @staticmethod
    def validate_session_token(session_token: str | None) -> tuple[bool, str | None]:
        """Session tokens are opaque, but must be present and bounded."""
        if not session_token:
            return False, "Session token is required"
        if len(session_token) > InputValidator.MAX_SESSION_TOKEN_LENGTH:
            return False, "Session token is too long"
        return True, None

    @staticmethod
    def parse_coordinate(lat: str | None, lng: str | None) -> Coordinate | None:
        """Coordinate from optional query values, or None if missing or invalid."""
        if lat is None or lng is None:
            return None
        try:
            return Coordinate(lat=float(lat), lng=float(lng))
        except ValueError:
            logger.debug(f"Ignoring invalid coordinate lat={lat} lng={lng}")
            return None


def require_user_input(input_text: str | None) -> str:
    """Return the stripped input or raise ``ValidationError``."""
    is_valid, error = InputValidator.validate_user_input(input_text)
    if not is_valid:
        raise ValidationError(error)
    return input_text.strip()


def require_session_token(session_token: str | None) -> str:
    """Return the token or raise ``ValidationError``."""
    is_valid, error = InputValidator.validate_session_token(session_token)
    if not is_valid:
        raise ValidationError(error)
    return session_token
