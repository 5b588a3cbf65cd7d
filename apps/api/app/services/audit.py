"""Structured audit logging helpers."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from typing import Any

from apps.api.app.core.ops import redact_sensitive_fields

_audit_logger = logging.getLogger("sustainassess.audit")


def _json_default(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def log_structured_event(event_type: str, **fields: Any) -> str:
    payload = redact_sensitive_fields({"event_type": event_type, **fields})
    serialized = json.dumps(
        payload, sort_keys=True, separators=(",", ":"), default=_json_default
    )
    _audit_logger.info(serialized)
    return serialized
