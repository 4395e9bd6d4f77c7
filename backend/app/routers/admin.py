"""
Rail Complaint Desk - Admin Complaint Router
Staff triage console: list, inspect, update and delete complaints.
Every endpoint checks the admin role before touching the store.
"""
from datetime import datetime
from typing import Literal, Optional
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth import AuthContext, authenticate, authorize
from ..models.db_models import AccountRole, ComplaintStatus, ComplaintPriority, ComplaintCategory
from ..responses import success_response
from ..services.complaints import (
    ComplaintService, ComplaintQueryEngine, ComplaintFilters, PageRequest, MAX_LIMIT
)
from ..services.complaints.serializers import complaint_to_dict
from .common import CamelModel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/complaints", tags=["admin"])


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class ComplaintUpdateRequest(CamelModel):
    """Partial update; omitted fields are left untouched."""
    status: Optional[ComplaintStatus] = None
    priority: Optional[ComplaintPriority] = None
    assigned_to: Optional[UUID] = None
    department: Optional[str] = Field(None, max_length=100)
    resolution_details: Optional[str] = Field(None, max_length=1000)
    comment: Optional[str] = Field(None, max_length=500)


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.get("")
def list_complaints(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_LIMIT),
    status: Optional[ComplaintStatus] = None,
    category: Optional[ComplaintCategory] = None,
    priority: Optional[ComplaintPriority] = None,
    department: Optional[str] = Query(None, max_length=100),
    assigned_to: Optional[UUID] = Query(None, alias="assignedTo"),
    search: Optional[str] = Query(None, max_length=200),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    sort_by: Literal["createdAt", "updatedAt", "priority", "status"] = Query("createdAt", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
    db: Session = Depends(get_db),
    context: AuthContext = Depends(authenticate),
):
    """
    Get paginated list of complaints matching all supplied filters.
    """
    authorize(context, AccountRole.ADMIN)

    filters = ComplaintFilters(
        status=status.value if status else None,
        category=category.value if category else None,
        priority=priority.value if priority else None,
        department=department.strip() if department else None,
        assigned_to=str(assigned_to) if assigned_to else None,
        start_date=start_date,
        end_date=end_date,
        search=search.strip() if search and search.strip() else None,
    )
    page_request = PageRequest(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)

    return success_response(ComplaintQueryEngine(db).list_complaints(filters, page_request))


@router.get("/{complaint_pk}")
def get_complaint(
    complaint_pk: UUID,
    db: Session = Depends(get_db),
    context: AuthContext = Depends(authenticate),
):
    """
    Get a single complaint with submitter, assignee, resolver and audit actors expanded.
    """
    authorize(context, AccountRole.ADMIN)
    return success_response(ComplaintQueryEngine(db).get_complaint(str(complaint_pk)))


@router.patch("/{complaint_pk}")
def update_complaint(
    complaint_pk: UUID,
    request: ComplaintUpdateRequest,
    db: Session = Depends(get_db),
    context: AuthContext = Depends(authenticate),
):
    """
    Update status, priority, assignment or resolution details.
    A status change is recorded in the complaint's audit trail.
    """
    authorize(context, AccountRole.ADMIN)

    patch = request.model_dump(mode="json", exclude_none=True)
    complaint = ComplaintService(db).update(str(complaint_pk), patch, actor=context)

    return success_response(complaint_to_dict(complaint), "Complaint updated successfully")


@router.delete("/{complaint_pk}")
def delete_complaint(
    complaint_pk: UUID,
    db: Session = Depends(get_db),
    context: AuthContext = Depends(authenticate),
):
    """
    Hard delete a complaint.
    """
    authorize(context, AccountRole.ADMIN)

    result = ComplaintService(db).delete(str(complaint_pk), actor=context)
    return success_response(result, "Complaint deleted successfully")
