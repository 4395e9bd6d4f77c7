"""
Rail Complaint Desk - Public Complaint Router
Complaint submission (anonymous or authenticated) and tracking by complaint number.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, status
from pydantic import EmailStr, Field
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth import AuthContext, optional_authenticate
from ..models.db_models import ComplaintCategory
from ..responses import success_response
from ..services.complaints import ComplaintService, COMPLAINT_ID_REGEX
from ..services.complaints.serializers import isoformat
from .common import CamelModel

router = APIRouter(prefix="/complaints", tags=["complaints"])


# =============================================================================
# REQUEST MODELS
# =============================================================================

class ComplaintSubmissionRequest(CamelModel):
    """Complaint submission. Mobile numbers follow the Indian 10-digit format."""
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone_number: Optional[str] = Field(None, pattern=r"^[6-9]\d{9}$")
    pnr: Optional[str] = Field(None, pattern=r"^\d{10}$")
    train_number: Optional[str] = Field(None, max_length=50)
    train_name: Optional[str] = Field(None, max_length=100)
    category: ComplaintCategory
    subcategory: Optional[str] = Field(None, max_length=100)
    description: str = Field(..., min_length=10, max_length=2000)
    journey_date: Optional[datetime] = None
    station: Optional[str] = Field(None, max_length=100)
    coach: Optional[str] = Field(None, max_length=20)
    seat_number: Optional[str] = Field(None, max_length=20)
    attachments: Optional[List[str]] = Field(None, max_length=10)


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.post("", status_code=status.HTTP_201_CREATED)
def submit_complaint(
    request: ComplaintSubmissionRequest,
    db: Session = Depends(get_db),
    context: Optional[AuthContext] = Depends(optional_authenticate),
):
    """
    Submit a new complaint. Linked to the caller's account when a valid token is sent.
    """
    data = request.model_dump(exclude_none=True)
    data["category"] = request.category.value

    complaint = ComplaintService(db).submit(data, submitter=context)

    return success_response(
        {
            "complaintId": complaint.complaint_id,
            "status": complaint.status,
            "category": complaint.category,
            "createdAt": isoformat(complaint.created_at),
            "message": "Complaint submitted successfully",
        },
        "Complaint submitted successfully",
    )


@router.get("/track/{complaint_id}")
def track_complaint(
    complaint_id: str = Path(..., pattern=COMPLAINT_ID_REGEX),
    db: Session = Depends(get_db),
):
    """
    Track complaint status by complaint number (CMP-YYYY-NNNN).
    """
    return success_response(ComplaintService(db).track(complaint_id))
