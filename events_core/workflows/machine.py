# events_core/workflows/machine.py
"""
Pure transition application.

No authorization, no persistence, no Django model imports. The workflow
service composes this with the guard and the store.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from django.utils import timezone

from .rules import get_rule, normalize_state, validate_comment


@dataclass(frozen=True)
class AuditRecord:
    """
    One immutable record of a past transition.
    """

    timestamp: datetime
    actor_id: Optional[int]
    actor_name: str
    from_state: str
    to_state: str
    action: str
    comment: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "actor_id": self.actor_id,
            "actor_name": self.actor_name,
            "from_state": self.from_state,
            "to_state": self.to_state,
            "action": self.action,
            "comment": self.comment,
        }


def apply_transition(
    event,
    action: str,
    actor,
    comment: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Tuple[str, AuditRecord]:
    """
    Resolve (state, action) against the table, check the comment, and build
    the audit record for the move. The event is not modified.

    Raises InvalidTransition before ValidationError, so a terminal event
    reports the terminal guard even when the comment is also bad.
    """
    current = normalize_state(getattr(event, "status", None))
    rule = get_rule(current, action)
    cleaned = validate_comment(rule.action, comment)

    record = AuditRecord(
        timestamp=now or timezone.now(),
        actor_id=getattr(actor, "id", None),
        actor_name=getattr(actor, "name", "") or "",
        from_state=current,
        to_state=rule.to_state,
        action=rule.action,
        comment=cleaned,
    )
    return rule.to_state, record


__all__ = ["AuditRecord", "apply_transition"]
