"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger.json import JsonFormatter

from buddy_booking.config import settings


class CustomJsonFormatter(JsonFormatter):
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

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_booking_attempt(
    request_id: str,
    learner_id: str,
    buddy_id: str,
    outcome: str,
    duration_ms: float,
) -> None:
    """Log structured booking outcome for analysis"""
    logging.info(
        "Booking attempt completed",
        extra={
            "request_id": request_id,
            "learner_id": learner_id,
            "buddy_id": buddy_id,
            "step": "booking_complete",
            "outcome": outcome,
            "duration_ms": duration_ms,
        },
    )


def log_transition_attempt(
    request_id: str,
    session_id: str,
    actor_id: str,
    target_status: str,
    outcome: str,
) -> None:
    """Log structured lifecycle outcome for analysis"""
    logging.info(
        "Session transition completed",
        extra={
            "request_id": request_id,
            "session_id": session_id,
            "actor_id": actor_id,
            "step": "transition_complete",
            "target_status": target_status,
            "outcome": outcome,
        },
    )
