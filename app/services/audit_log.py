"""Fire-and-forget sink for lifecycle events.

Events are appended to the event log repo and mirrored to the service
log.  A failing sink is logged and swallowed: audit trouble must never
undo a completion that already happened.
"""

from __future__ import annotations

import logging

from app.models.events import LifecycleEvent
from app.repos.event_log_repo import EventLogRepo

logger = logging.getLogger(__name__)


class AuditLog:
    def __init__(self, repo: EventLogRepo) -> None:
        self._repo = repo

    async def emit(self, event: LifecycleEvent) -> None:
        logger.info(
            "event=%s enrollment=%s user=%s",
            event.kind,
            event.enrollment_id,
            event.user_id,
            extra={"org_id": str(event.org_id), "enrollment_id": str(event.enrollment_id)},
        )
        try:
            await self._repo.append(event)
        except Exception:
            logger.exception(
                "Audit log append failed for event=%s enrollment=%s",
                event.kind,
                event.enrollment_id,
            )
