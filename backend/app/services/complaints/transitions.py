"""
Complaint Status Transitions

Single validation hook for status changes. Admins may currently move a
complaint between any two statuses (manual override); tightening the graph
means editing ALLOWED_TRANSITIONS only.
"""
from typing import Dict, FrozenSet

from ...errors import ValidationError
from ...models.db_models import ComplaintStatus


ALLOWED_TRANSITIONS: Dict[ComplaintStatus, FrozenSet[ComplaintStatus]] = {
    ComplaintStatus.PENDING: frozenset(ComplaintStatus),
    ComplaintStatus.IN_PROGRESS: frozenset(ComplaintStatus),
    ComplaintStatus.RESOLVED: frozenset(ComplaintStatus),
    ComplaintStatus.REJECTED: frozenset(ComplaintStatus),
}


def check_status_transition(current: str, target: str) -> None:
    """Raise ValidationError if current -> target is not an allowed move."""
    try:
        current_status = ComplaintStatus(current)
        target_status = ComplaintStatus(target)
    except ValueError:
        raise ValidationError(f"Invalid status transition: {current} -> {target}")

    if target_status not in ALLOWED_TRANSITIONS[current_status]:
        raise ValidationError(
            f"Cannot move complaint from {current_status.value} to {target_status.value}"
        )
