"""Unit tests for structured logging"""

import json
import logging

from digital_wallet.infrastructure.observability.logging import MASK, WalletJsonFormatter, request_id_var


def _format(extra: dict) -> dict:
    record = logging.LogRecord("digital_wallet.test", logging.INFO, __file__, 1, "hello", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    formatter = WalletJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
    return json.loads(formatter.format(record))


def test_record_carries_service_metadata():
    """Test each line names the service, level and logger"""
    line = _format({})

    assert line["message"] == "hello"
    assert line["level"] == "INFO"
    assert line["name"] == "digital_wallet.test"
    assert line["service"]
    assert "timestamp" in line


def test_credentials_are_masked():
    line = _format({"otp_code": "123456", "password": "Secret123", "user_id": "u-1"})

    assert line["otp_code"] == MASK
    assert line["password"] == MASK
    assert line["user_id"] == "u-1"


def test_request_id_comes_from_context():
    token = request_id_var.set("req-42")
    try:
        assert _format({})["request_id"] == "req-42"
        assert _format({"request_id": "explicit"})["request_id"] == "explicit"
    finally:
        request_id_var.reset(token)
