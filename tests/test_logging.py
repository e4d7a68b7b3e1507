import logging

from compsearch.utils.logging import RedactingFilter, get_logger, redact


def _record(msg, *args):
    return logging.LogRecord("compsearch.test", logging.INFO, __file__, 1, msg, args, None)


def test_redact_masks_cookie_and_auth_headers():
    assert redact("Cookie: JSESSIONID=abc; RETS-Session-ID=xyz") == "Cookie: ***"
    assert redact("Authorization: Basic YWdlbnQ6c2VjcmV0") == "Authorization: ***"


def test_redact_masks_key_value_secrets():
    text = redact("rets_login user=agent password=hunter2 key=AIzaSy123")
    assert "hunter2" not in text
    assert "AIzaSy123" not in text
    assert "user=agent" in text


def test_redact_leaves_ordinary_events_alone():
    line = "rets_search class=RE_1 rows=3 count=3"
    assert redact(line) == line


def test_filter_rewrites_formatted_message():
    record = _record("geocode url=%s key=%s", "https://maps.example.com", "secret-key")
    assert RedactingFilter().filter(record) is True
    assert record.getMessage() == "geocode url=https://maps.example.com key=***"


def test_package_handler_carries_filter():
    get_logger("test")
    handlers = logging.getLogger("compsearch").handlers
    assert any(isinstance(f, RedactingFilter) for h in handlers for f in h.filters)
