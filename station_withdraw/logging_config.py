"""
Logging configuration for station-withdraw.

Provides structured JSON logging for audit trails and debugging.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Optional

# Context variable for request ID tracking
request_id_var: ContextVar[str] = ContextVar('request_id', default='')


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs one JSON object per line so logs can be shipped to any
    aggregation system without further parsing rules.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


class AuditLogger:
    """
    Specialized logger for withdrawal audit events.

    Every request that reaches the orchestrator produces a
    WITHDRAWAL_REQUEST event followed by exactly one of
    WITHDRAWAL_REJECTED or WITHDRAWAL_COMPLETE.
    """

    def __init__(self, name: str = "station_withdraw.audit"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        if not self._logger.isEnabledFor(level):
            return
        extra = {
            "event_type": event_type,
            "request_id": request_id_var.get(),
            **kwargs
        }

        record = self._logger.makeRecord(
            self._logger.name,
            level,
            "",
            0,
            f"{event_type}: {kwargs.get('message', '')}",
            (),
            None
        )
        record.extra_fields = extra
        self._logger.handle(record)

    def withdrawal_request(self, account: str, target: str, value: int, nonce: int) -> None:
        """Log an incoming, already parsed withdrawal request."""
        self._log(
            logging.INFO,
            "WITHDRAWAL_REQUEST",
            account=account,
            target=target,
            value=str(value),
            nonce=str(nonce),
            message=f"Withdrawal requested for {account}"
        )

    def withdrawal_rejected(self, account: str, outcome: str, reason: str) -> None:
        """Log a rejected withdrawal."""
        level = logging.ERROR if outcome in ("INTERNAL", "UPSTREAM_UNAVAILABLE") else logging.WARNING
        self._log(
            level,
            "WITHDRAWAL_REJECTED",
            account=account,
            outcome=outcome,
            reason=reason,
            message=f"Withdrawal rejected: {reason}"
        )

    def withdrawal_submitted(self, account: str, tx_hash: str) -> None:
        """Log a broadcast, not yet confirmed, transaction."""
        self._log(
            logging.INFO,
            "WITHDRAWAL_SUBMITTED",
            account=account,
            tx_hash=tx_hash,
            message=f"Transaction {tx_hash} submitted for {account}"
        )

    def withdrawal_complete(self, account: str, tx_hash: str, duration_ms: int) -> None:
        """Log a confirmed withdrawal."""
        self._log(
            logging.INFO,
            "WITHDRAWAL_COMPLETE",
            account=account,
            tx_hash=tx_hash,
            duration_ms=duration_ms,
            message=f"Withdrawal confirmed in {tx_hash}"
        )

    def security_event(
        self,
        event: str,
        severity: str = "medium",
        **details
    ) -> None:
        """Log a security-relevant event."""
        level = {
            "low": logging.INFO,
            "medium": logging.WARNING,
            "high": logging.ERROR,
            "critical": logging.CRITICAL
        }.get(severity, logging.WARNING)

        self._log(
            level,
            "SECURITY_EVENT",
            security_event=event,
            severity=severity,
            **details,
            message=f"Security event: {event}"
        )


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatting (recommended for production)
        log_file: Optional file path for log output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def set_request_id(request_id: Optional[str] = None) -> str:
    """
    Set the request ID for the current context.

    Args:
        request_id: Request ID to set, or None to generate one

    Returns:
        The request ID that was set
    """
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


# Global audit logger instance
audit_log = AuditLogger()
