"""Activity logging helpers.

Best-effort audit trail: failures should not break the main request.
"""

from __future__ import annotations

from typing import Any, Optional

from flask import current_app, has_request_context, request
from sqlalchemy.exc import SQLAlchemyError

from extensions import db


def log_activity(
    *,
    user_id: Optional[str],
    action: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[Any] = None,
    details: Optional[dict[str, Any]] = None,
) -> None:
    from models.user import ActivityLog

    in_request = has_request_context()
    try:
        log = ActivityLog(
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            details=details,
            ip_address=(request.remote_addr if in_request else None),
            user_agent=(request.user_agent.string[:255] if in_request and request.user_agent else None),
        )
        db.session.add(log)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.warning('Activity log write failed (%s): %s', action, e)
