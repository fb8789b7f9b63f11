"""
Input sanitisation for user-supplied text

Habit names, descriptions, notes and goals end up rendered in a browser and
embedded in AI prompts, so markup and script fragments are stripped before
anything is stored or sent.
"""

import re
from typing import Any, Optional

TAG_PATTERN = re.compile(r"<[^>]*>")
JAVASCRIPT_PATTERN = re.compile(r"javascript:", re.IGNORECASE)
EVENT_HANDLER_PATTERN = re.compile(r"on\w+\s*=", re.IGNORECASE)
ANGLE_BRACKETS_PATTERN = re.compile(r"[<>]")
USERNAME_DISALLOWED_PATTERN = re.compile(r"[^a-z0-9_-]")

MAX_USERNAME_LENGTH = 30


def sanitize_input(value: Any) -> str:
    """
    Strip HTML tags, javascript: URLs and inline event handlers

    Non-string input yields an empty string.

    Example:
        >>> sanitize_input('<b>Read</b> onclick=alert(1) daily')
        'Read alert(1) daily'
    """
    if not isinstance(value, str):
        return ""

    sanitized = TAG_PATTERN.sub("", value)
    sanitized = JAVASCRIPT_PATTERN.sub("", sanitized)
    sanitized = EVENT_HANDLER_PATTERN.sub("", sanitized)
    sanitized = ANGLE_BRACKETS_PATTERN.sub("", sanitized)

    return sanitized.strip()


def sanitize_text(value: Any, max_length: Optional[int] = None) -> str:
    """Sanitize and truncate free text"""
    sanitized = sanitize_input(value)
    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length]
    return sanitized


def sanitize_username(value: Any) -> str:
    """Lowercase letters, digits, underscore and hyphen only, at most 30 chars"""
    if not isinstance(value, str):
        return ""
    return USERNAME_DISALLOWED_PATTERN.sub("", value.lower())[:MAX_USERNAME_LENGTH]
