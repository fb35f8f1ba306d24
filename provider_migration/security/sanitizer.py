"""Sanitization of error messages that may carry credentials."""

import logging
import re
from dataclasses import dataclass
from typing import List, Pattern, Sequence

logger = logging.getLogger(__name__)

SENSITIVE_KEYWORDS = ("password", "secret", "token", "key", "credential", "auth")

GENERIC_ERROR_MESSAGE = "database error (details omitted for security)"


@dataclass
class SanitizationRule:
    """Redacts the value following ``<keyword>=`` or ``<keyword>:``."""
    keyword: str
    pattern: Pattern
    replacement: str = r"\1[REDACTED]\2"


class ErrorSanitizer:
    """Removes credential material from error messages before they are reported."""

    def __init__(self, keywords: Sequence[str] = SENSITIVE_KEYWORDS):
        self.keywords = [keyword.lower() for keyword in keywords]
        self.rules: List[SanitizationRule] = [
            SanitizationRule(
                keyword=keyword,
                pattern=re.compile(
                    rf"({re.escape(keyword)}\s*[:=]\s*['\"]*)[^'\"\s]+(['\"]*\s*)",
                    re.IGNORECASE
                ),
            )
            for keyword in self.keywords
        ]

    def contains_sensitive_keyword(self, message: str) -> bool:
        lowered = message.lower()
        return any(keyword in lowered for keyword in self.keywords)

    def sanitize(self, message: str, debug_mode: bool = False) -> str:
        """Sanitize an error message.

        Without debug mode a message mentioning any sensitive keyword is
        replaced entirely by a generic message. In debug mode only the values
        assigned to sensitive keywords are redacted and the message is
        prefixed with ``DEBUG:``.

        Args:
            message: Error message to sanitize
            debug_mode: Whether to keep non-sensitive details

        Returns:
            Sanitized message
        """
        message = message or ""
        if debug_mode:
            sanitized = message
            for rule in self.rules:
                sanitized = rule.pattern.sub(rule.replacement, sanitized)
            return f"DEBUG: {sanitized}"

        if self.contains_sensitive_keyword(message):
            logger.debug("Replaced error message containing sensitive keywords")
            return GENERIC_ERROR_MESSAGE
        return message


_default_sanitizer = ErrorSanitizer()


def sanitize_error_message(message: str, debug_mode: bool = False) -> str:
    """Sanitize an error message with the default keyword list."""
    return _default_sanitizer.sanitize(message, debug_mode)
