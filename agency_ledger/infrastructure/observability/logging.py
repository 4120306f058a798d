"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from agency_ledger.config import settings

logger = logging.getLogger("agency_ledger")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    root = logging.getLogger()
    root.setLevel(level)

    # Remove existing handlers
    root.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    root.addHandler(handler)


def log_submission(submission_id: str, project_id: str, installment_number: int, submitted_by: str) -> None:
    logger.info(
        "Payment submitted",
        extra={
            "step": "payment_submitted",
            "submission_id": submission_id,
            "project_id": project_id,
            "installment_number": installment_number,
            "user_id": submitted_by,
        },
    )


def log_review(
    submission_id: str,
    project_id: str,
    installment_number: int,
    outcome: str,
    reviewed_by: str,
    notes: Optional[str] = None,
) -> None:
    """Log structured review outcome for audit"""
    logger.info(
        "Payment reviewed",
        extra={
            "step": "payment_reviewed",
            "submission_id": submission_id,
            "project_id": project_id,
            "installment_number": installment_number,
            "review_outcome": outcome,
            "user_id": reviewed_by,
            "review_notes": notes,
        },
    )


def log_transaction(action: str, transaction_id: str, user_id: str) -> None:
    logger.info(
        "Transaction %s",
        action,
        extra={"step": f"transaction_{action}", "transaction_id": transaction_id, "user_id": user_id},
    )
