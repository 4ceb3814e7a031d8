from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

logger = logging.getLogger("audit")


@dataclass
class AuditEvent:
    """One privileged or state-changing dispatch operation.

    Holds identifiers and counts only: account passwords, hashes and session
    credentials are never recorded.
    """

    action: str
    resource_type: str
    resource_id: Optional[str] = None
    subject: Optional[str] = None
    extra: Optional[Dict[str, Any]] = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_json(self) -> str:
        # UUIDs and role/status enums in ``extra`` render as strings.
        return json.dumps(asdict(self), default=str, sort_keys=True)


def _request_subject() -> Optional[str]:
    from src.dispatch.security import get_current_subject

    return get_current_subject()


class AuditService:
    def log_event(
        self,
        *,
        action: str,
        resource_type: str,
        resource_id: Optional[str] = None,
        subject: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> AuditEvent:
        """Write one JSON line to the ``audit`` logger and return the event.

        ``subject`` defaults to the principal authenticated on the current
        request; registration passes the new account id explicitly since no
        one is logged in yet.
        """

        event = AuditEvent(
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            subject=subject if subject is not None else _request_subject(),
            extra=extra,
        )
        logger.info(event.to_json())
        return event


audit_service = AuditService()
