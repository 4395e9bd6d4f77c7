"""
Complaint Service

Owns the complaint lifecycle: submission, staff updates, public tracking
and hard deletion. Every status change writes its audit entry in the same
transaction as the status itself.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from ...auth import AuthContext
from ...errors import NotFoundError
from ...models.db_models import (
    AccountDB, ComplaintDB, StatusUpdateDB,
    ComplaintStatus, ComplaintPriority, utcnow
)
from .id_allocator import ComplaintNumberAllocator, COMPLAINT_ID_PATTERN
from .serializers import complaint_to_public_dict
from .transitions import check_status_transition

logger = logging.getLogger(__name__)


# Submission fields copied straight onto the complaint row
SUBMISSION_FIELDS = (
    "name", "phone_number", "pnr", "train_number", "train_name",
    "category", "subcategory", "description", "station", "coach", "seat_number",
)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalise an incoming datetime to the naive UTC the columns store."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class ComplaintService:
    """
    Complaint lifecycle operations.

    Validation happens at the HTTP boundary; these methods trust their input
    shape and only enforce existence and lifecycle rules.
    """

    def __init__(self, db: Session):
        self.db = db
        self.allocator = ComplaintNumberAllocator(db)

    # =========================================================================
    # SUBMISSION
    # =========================================================================

    def submit(self, data: Dict[str, Any], submitter: Optional[AuthContext] = None) -> ComplaintDB:
        """
        Create a pending, medium-priority complaint with a fresh complaint number.

        The submitter's account is linked only when they were authenticated.
        """
        complaint = ComplaintDB(
            id=str(uuid4()),
            complaint_id=self.allocator.next_complaint_id(),
            user_id=submitter.account_id if submitter else None,
            email=data["email"].strip().lower(),
            journey_date=to_naive_utc(data.get("journey_date")),
            attachments=list(data.get("attachments") or []),
            status=ComplaintStatus.PENDING.value,
            priority=ComplaintPriority.MEDIUM.value,
        )
        for field in SUBMISSION_FIELDS:
            if data.get(field) is not None:
                setattr(complaint, field, data[field])

        self.db.add(complaint)
        self.db.commit()
        self.db.refresh(complaint)

        logger.info(
            f"New complaint submitted: {complaint.complaint_id} "
            f"(category={complaint.category}, anonymous={submitter is None})"
        )
        return complaint

    # =========================================================================
    # STAFF UPDATES
    # =========================================================================

    def update(self, complaint_pk: str, patch: Dict[str, Any], actor: AuthContext) -> ComplaintDB:
        """
        Apply the fields present in `patch`.

        Recognised keys: status, priority, assigned_to, department,
        resolution_details, comment. A status that differs from the stored one
        appends an audit entry carrying `comment`; moving to resolved stamps
        resolved_at/resolved_by, moving away from resolved clears them.
        """
        complaint = self.db.query(ComplaintDB).filter(
            ComplaintDB.id == complaint_pk
        ).with_for_update().first()

        if not complaint:
            raise NotFoundError("Complaint not found")

        now = utcnow()
        new_status = patch.get("status")
        status_changed = new_status is not None and new_status != complaint.status
        if status_changed:
            check_status_transition(complaint.status, new_status)

        if patch.get("assigned_to") is not None:
            assignee = self.db.query(AccountDB.id).filter(AccountDB.id == patch["assigned_to"]).first()
            if assignee is None:
                raise NotFoundError("Assignee not found")
            complaint.assigned_to = patch["assigned_to"]

        if patch.get("priority") is not None:
            complaint.priority = patch["priority"]

        if patch.get("department") is not None:
            complaint.department = patch["department"]

        if patch.get("resolution_details") is not None:
            complaint.resolution_details = patch["resolution_details"]

        if status_changed:
            previous_status = complaint.status
            complaint.status = new_status
            self.db.add(StatusUpdateDB(
                complaint_pk=complaint.id,
                status=new_status,
                updated_by=actor.account_id,
                updated_at=now,
                comment=patch.get("comment"),
            ))

            if new_status == ComplaintStatus.RESOLVED.value:
                complaint.resolved_at = now
                complaint.resolved_by = actor.account_id
            elif previous_status == ComplaintStatus.RESOLVED.value:
                complaint.resolved_at = None
                complaint.resolved_by = None

        complaint.updated_at = now
        self.db.commit()
        self.db.refresh(complaint)

        logger.info(
            f"Complaint updated: {complaint.complaint_id} by {actor.email} "
            f"(status={new_status or 'unchanged'})"
        )
        return complaint

    def update_status(
        self,
        complaint_pk: str,
        status: ComplaintStatus,
        actor: AuthContext,
        comment: Optional[str] = None,
        resolution_details: Optional[str] = None,
    ) -> ComplaintDB:
        """Convenience wrapper around update() for a status change alone."""
        patch: Dict[str, Any] = {"status": ComplaintStatus(status).value, "comment": comment}
        if resolution_details is not None:
            patch["resolution_details"] = resolution_details
        return self.update(complaint_pk, patch, actor)

    # =========================================================================
    # PUBLIC TRACKING
    # =========================================================================

    def track(self, complaint_id: str) -> Dict[str, Any]:
        """Public projection of a complaint, looked up by its complaint number."""
        if not complaint_id or not COMPLAINT_ID_PATTERN.match(complaint_id):
            raise NotFoundError("Complaint not found")

        complaint = self.db.query(ComplaintDB).filter(
            ComplaintDB.complaint_id == complaint_id
        ).first()
        if not complaint:
            raise NotFoundError("Complaint not found")

        return complaint_to_public_dict(complaint)

    # =========================================================================
    # DELETION
    # =========================================================================

    def delete(self, complaint_pk: str, actor: Optional[AuthContext] = None) -> Dict[str, str]:
        """Hard delete a complaint and its audit trail."""
        complaint = self.db.query(ComplaintDB).filter(ComplaintDB.id == complaint_pk).first()
        if not complaint:
            raise NotFoundError("Complaint not found")

        complaint_id = complaint.complaint_id
        self.db.delete(complaint)
        self.db.commit()

        logger.info(f"Complaint deleted: {complaint_id} by {actor.email if actor else 'system'}")
        return {"complaintId": complaint_id}
