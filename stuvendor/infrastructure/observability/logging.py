"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def __init__(self, *args, service: str = "stuvendor-gateway", **kwargs):
        super().__init__(*args, **kwargs)
        self.service = service

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service


def setup_logging(level: str = "INFO", service: str = "stuvendor-gateway") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        service=service,
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_withdrawal(
    vendor_id: str,
    reference: str,
    amount: int,
    outcome: str,
    request_id: Optional[str] = None,
    provider_transaction_id: Optional[str] = None,
) -> None:
    """Log structured withdrawal outcome for reconciliation"""
    logging.getLogger("stuvendor.withdrawals").info(
        "Withdrawal finished",
        extra={
            "request_id": request_id,
            "vendor_id": vendor_id,
            "step": "withdrawal_complete",
            "reference": reference,
            "amount": amount,
            "outcome": outcome,
            "provider_transaction_id": provider_transaction_id,
        },
    )


def log_split(order_id: str, vendor_count: int, total: int, duplicate: bool = False) -> None:
    """Log structured split-payment outcome"""
    logging.getLogger("stuvendor.splits").info(
        "Order split recorded" if not duplicate else "Order split already recorded",
        extra={
            "order_id": order_id,
            "step": "split_complete",
            "vendor_count": vendor_count,
            "total": total,
            "duplicate": duplicate,
        },
    )
