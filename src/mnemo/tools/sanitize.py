"""Redaction of sensitive substrings in user-facing error messages."""

import re

_REDACTIONS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"), "[email]"),
    (re.compile(r"Bearer\s+[A-Za-z0-9\-._~+/]+=*"), "Bearer [token]"),
    (re.compile(r"access_token=[^&\s]+"), "access_token=[redacted]"),
    (re.compile(r"api[_-]?key[=:]\s*[\"']?[A-Za-z0-9\-_]+[\"']?", re.IGNORECASE), "api_key=[redacted]"),
    (re.compile(r"/Users/[^/\s]+"), "/Users/[user]"),
    (re.compile(r"/home/[^/\s]+"), "/home/[user]"),
]


def sanitize_error(error: BaseException | str) -> str:
    """Error text with emails, tokens, api keys and home paths redacted."""
    message = str(error)
    for pattern, replacement in _REDACTIONS:
        message = pattern.sub(replacement, message)
    return message
