"""
Policy Service - Input cleaning and error redaction guardrails
"""
from typing import Optional, Tuple
import re
import structlog

logger = structlog.get_logger()

INTERNAL_ERROR_MESSAGE = "An internal error occurred. Please try again or contact support."
CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


class PolicyService:
    """Guardrails applied at the edges of the command pipeline"""

    @staticmethod
    def sanitize_error_message(error: Exception) -> str:
        """
        Sanitize error messages to prevent leaking tokens, passwords, or sensitive data.
        """
        error_str = str(error) or type(error).__name__

        # Remove potential JWT tokens (base64-like strings)
        error_str = re.sub(r'[A-Za-z0-9_-]{20,}\.[A-Za-z0-9_-]{20,}\.[A-Za-z0-9_-]{20,}', '[TOKEN_REDACTED]', error_str)

        # Remove potential API keys (long alphanumeric strings)
        error_str = re.sub(r'\b[A-Za-z0-9]{32,}\b', '[API_KEY_REDACTED]', error_str)

        # Remove potential passwords (common patterns)
        error_str = re.sub(r'(?i)(password|passwd|pwd|secret|token|apikey|key)\s*[:=]\s*[^\s&]+', r'\1=[REDACTED]', error_str)

        # Remove connection strings and URLs carrying credentials
        error_str = re.sub(r'(postgresql|postgres|mysql|mongodb|redis)(\+\w+)?://[^\s]+', '[DB_CONNECTION_REDACTED]', error_str)
        error_str = re.sub(r'https?://[^\s/]+:[^\s@]+@[^\s]+', '[URL_REDACTED]', error_str)

        # Generic message for internal errors
        if "traceback" in error_str.lower() or "exception" in error_str.lower():
            return INTERNAL_ERROR_MESSAGE

        return error_str

    @staticmethod
    def sanitize_user_input(user_input: Optional[str], max_length: int = 1000) -> str:
        """
        Clean free-form command text before analysis.
        Removes markup and control characters and limits the length.
        """
        if not user_input:
            return ""

        # Code blocks and XML/HTML tags carry no command meaning
        user_input = re.sub(r'```.*?```', ' ', user_input, flags=re.DOTALL)
        user_input = re.sub(r'<[^>]+>', ' ', user_input)

        user_input = CONTROL_CHARS.sub('', user_input)
        user_input = " ".join(user_input.split())

        if len(user_input) > max_length:
            logger.warning("User input truncated due to length", original_length=len(user_input), max_length=max_length)
            user_input = user_input[:max_length]

        return user_input

    @staticmethod
    def validate_user_input(user_input: str) -> Tuple[bool, Optional[str]]:
        """
        Validate cleaned input.
        Returns (is_valid, error_message)
        """
        if not user_input or len(user_input.strip()) == 0:
            return False, "Input cannot be empty"

        if not re.search(r'\w', user_input):
            return False, "Input contains no words"

        return True, None
