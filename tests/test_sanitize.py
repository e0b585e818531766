"""Tests for error redaction."""

from mnemo.tools.sanitize import sanitize_error


def test_redacts_email():
    assert sanitize_error("no user jane.doe@example.com") == "no user [email]"


def test_redacts_bearer_token():
    message = sanitize_error("401 with Bearer abc.DEF-123_xyz=")
    assert "abc.DEF" not in message
    assert "Bearer [token]" in message


def test_redacts_access_token():
    message = sanitize_error("GET /cb?access_token=s3cr3t&state=1")
    assert message == "GET /cb?access_token=[redacted]&state=1"


def test_redacts_api_key():
    assert "sk-live" not in sanitize_error("bad api_key=sk-live-123")
    assert "sk-live" not in sanitize_error("API-KEY: 'sk-live-123'")


def test_redacts_home_paths():
    assert sanitize_error("open /home/alice/data/memory.db") == "open /home/[user]/data/memory.db"
    assert sanitize_error("open /Users/bob/memory.db") == "open /Users/[user]/memory.db"


def test_accepts_exceptions():
    assert sanitize_error(ValueError("mail me@host.io")) == "mail [email]"


def test_plain_message_unchanged():
    assert sanitize_error("Memory not found") == "Memory not found"
