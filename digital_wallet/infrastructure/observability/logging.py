"""Structured JSON logging for the wallet service"""

import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from digital_wallet.config import settings

# Bound by RequestIDMiddleware for the lifetime of one HTTP request
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Credentials that must never reach a log line, even when passed in `extra`
SENSITIVE_FIELDS = frozenset({"otp_code", "code", "password", "confirm_password", "access_token", "salt"})
MASK = "***"


class WalletJsonFormatter(jsonlogger.JsonFormatter):
    """JSON records carrying service metadata and the current request id, with credentials masked"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name
        if not log_record.get("request_id"):
            log_record["request_id"] = request_id_var.get()
        for key in SENSITIVE_FIELDS.intersection(log_record):
            log_record[key] = MASK


def setup_logging(level: str = "INFO") -> None:
    """Route every logger through one JSON handler on stdout"""
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(WalletJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    root.addHandler(handler)

    # SQL echo is configured on the engine, not through the root level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def log_money_movement(
    kind: str,
    reference: str,
    user_id: str,
    amount_cents: int,
    currency: str,
    duration_ms: float,
) -> None:
    """One audit line per settled balance-changing operation"""
    logging.getLogger("digital_wallet.ledger").info(
        "Money movement completed",
        extra={
            "user_id": user_id,
            "step": f"{kind}_complete",
            "reference": reference,
            "amount_cents": amount_cents,
            "currency": currency,
            "duration_ms": round(duration_ms, 2),
        },
    )
