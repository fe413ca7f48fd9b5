"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from financial_guru.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_statement_processed(
    statement_id: str,
    institution: str,
    outcome: str,
    transaction_count: int,
    duration_ms: float,
) -> None:
    """Log structured statement processing outcome"""
    logging.info(
        "Statement processed",
        extra={
            "statement_id": statement_id,
            "step": "statement_processed",
            "institution": institution,
            "outcome": outcome,
            "transaction_count": transaction_count,
            "duration_ms": duration_ms,
        },
    )


def log_chat(request_id: str, model: str, fallback: bool, duration_ms: float) -> None:
    """Log advisor chat round-trip"""
    logging.info(
        "Chat completed",
        extra={
            "request_id": request_id,
            "step": "chat_completed",
            "model": model,
            "fallback": fallback,
            "duration_ms": duration_ms,
        },
    )
