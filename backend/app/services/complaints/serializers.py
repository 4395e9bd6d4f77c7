"""
Complaint Serializers

Three views of a complaint:
- admin list item: assignee and resolver expanded
- admin detail: additionally the submitter account and each audit actor
- public tracking: no submitter identity, no triage internals
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from ...models.db_models import AccountDB, ComplaintDB, StatusUpdateDB


def isoformat(value: Optional[datetime]) -> Optional[str]:
    """Format datetime to ISO string."""
    if value is None:
        return None
    return value.isoformat()


def account_ref(
    account: Optional[AccountDB],
    account_id: Optional[str],
    *extra_fields: str,
) -> Optional[Dict[str, Any]]:
    """
    Expand an account back-reference to {id, name, email, ...}.
    Falls back to the bare id when the account row is gone.
    """
    if account is None:
        return {"id": account_id} if account_id else None

    ref = {"id": account.id, "name": account.name, "email": account.email}
    field_map = {"role": account.role, "phoneNumber": account.phone_number}
    for field in extra_fields:
        ref[field] = field_map[field]
    return ref


def status_update_to_dict(update: StatusUpdateDB, expand_actor: bool = False) -> Dict[str, Any]:
    return {
        "status": update.status,
        "updatedBy": (
            account_ref(update.actor, update.updated_by) if expand_actor else update.updated_by
        ),
        "updatedAt": isoformat(update.updated_at),
        "comment": update.comment,
    }


def _journey(complaint: ComplaintDB) -> Dict[str, Any]:
    return {
        "pnr": complaint.pnr,
        "trainNumber": complaint.train_number,
        "trainName": complaint.train_name,
        "journeyDate": isoformat(complaint.journey_date),
        "station": complaint.station,
        "coach": complaint.coach,
        "seatNumber": complaint.seat_number,
    }


def complaint_to_dict(complaint: ComplaintDB, detail: bool = False) -> Dict[str, Any]:
    """Staff view of a complaint."""
    if detail:
        submitter = account_ref(complaint.submitter, complaint.user_id, "phoneNumber")
        assignee = account_ref(complaint.assignee, complaint.assigned_to, "role")
    else:
        submitter = complaint.user_id
        assignee = account_ref(complaint.assignee, complaint.assigned_to)

    return {
        "id": complaint.id,
        "complaintId": complaint.complaint_id,
        "userId": submitter,
        "name": complaint.name,
        "email": complaint.email,
        "phoneNumber": complaint.phone_number,
        **_journey(complaint),
        "category": complaint.category,
        "subcategory": complaint.subcategory,
        "description": complaint.description,
        "status": complaint.status,
        "priority": complaint.priority,
        "aiSuggestedCategory": complaint.ai_suggested_category,
        "aiConfidence": complaint.ai_confidence,
        "assignedTo": assignee,
        "department": complaint.department,
        "statusUpdates": [
            status_update_to_dict(update, expand_actor=detail)
            for update in complaint.status_updates
        ],
        "attachments": list(complaint.attachments or []),
        "resolutionDetails": complaint.resolution_details,
        "resolvedAt": isoformat(complaint.resolved_at),
        "resolvedBy": account_ref(complaint.resolver, complaint.resolved_by),
        "createdAt": isoformat(complaint.created_at),
        "updatedAt": isoformat(complaint.updated_at),
    }


def complaint_to_public_dict(complaint: ComplaintDB) -> Dict[str, Any]:
    """
    Tracking view for riders. Unset fields are omitted rather than null.
    """
    history: List[Dict[str, Any]] = [
        {
            key: value
            for key, value in (
                ("status", update.status),
                ("updatedAt", isoformat(update.updated_at)),
                ("comment", update.comment),
            )
            if value is not None
        }
        for update in complaint.status_updates
    ]

    view = {
        "complaintId": complaint.complaint_id,
        "status": complaint.status,
        "priority": complaint.priority,
        "category": complaint.category,
        "subcategory": complaint.subcategory,
        "description": complaint.description,
        **_journey(complaint),
        "department": complaint.department,
        "resolutionDetails": complaint.resolution_details,
        "resolvedAt": isoformat(complaint.resolved_at),
        "createdAt": isoformat(complaint.created_at),
        "updatedAt": isoformat(complaint.updated_at),
    }
    public = {key: value for key, value in view.items() if value is not None}
    public["statusUpdates"] = history
    return public
