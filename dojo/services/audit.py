from __future__ import annotations

import logging
from typing import Any, Optional

from sqlmodel import Session

from dojo.models import AuditLog
from dojo.store import EntityStore

log = logging.getLogger(__name__)


def _as_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


class AuditRecorder:
    """Append-only log of admin changes. Entries are never edited or removed."""

    def __init__(self, session: Session):
        self.store = EntityStore(session, AuditLog)

    def record(self, target_user_id: int, field: str, old_value: Any, new_value: Any, reason: str, actor: str) -> AuditLog:
        entry = self.store.create(
            {
                "target_user_id": target_user_id,
                "field": field,
                "old_value": _as_text(old_value),
                "new_value": _as_text(new_value),
                "reason": reason,
                "actor": actor,
            }
        )
        log.info("Audit: user %s %s %r -> %r by %s", target_user_id, field, entry.old_value, entry.new_value, actor)
        return entry

    def history(self, target_user_id: int) -> list[AuditLog]:
        return self.store.filter(target_user_id=target_user_id, order_by="id")
