"""
Complaint Query Engine

Filtered, sorted, paginated staff views over complaints. The page metadata
is always computed from the same filtered query the page is cut from.
"""
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import case, or_
from sqlalchemy.orm import Query, Session, selectinload

from ...errors import NotFoundError, ValidationError
from ...models.db_models import ComplaintDB, StatusUpdateDB, PRIORITY_RANK, STATUS_RANK
from .complaint_service import to_naive_utc
from .serializers import complaint_to_dict

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

# Sortable fields; anything else is rejected
SORT_COLUMNS = {
    "createdAt": ComplaintDB.created_at,
    "updatedAt": ComplaintDB.updated_at,
    "priority": case(PRIORITY_RANK, value=ComplaintDB.priority, else_=0),
    "status": case(STATUS_RANK, value=ComplaintDB.status, else_=0),
}
SORT_ORDERS = ("asc", "desc")


@dataclass
class ComplaintFilters:
    """AND-combined filters; None means "not filtered"."""
    status: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    department: Optional[str] = None
    assigned_to: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    search: Optional[str] = None


@dataclass
class PageRequest:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    sort_by: str = "createdAt"
    sort_order: str = "desc"


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so search terms match literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_pagination(page: int, limit: int, total_items: int) -> Dict[str, Any]:
    total_pages = math.ceil(total_items / limit) if limit else 0
    return {
        "currentPage": page,
        "totalPages": total_pages,
        "totalItems": total_items,
        "itemsPerPage": limit,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
    }


class ComplaintQueryEngine:
    """Read-only complaint lookups for staff."""

    def __init__(self, db: Session):
        self.db = db

    def filtered_query(self, filters: ComplaintFilters) -> Query:
        query = self.db.query(ComplaintDB)

        if filters.status:
            query = query.filter(ComplaintDB.status == filters.status)
        if filters.category:
            query = query.filter(ComplaintDB.category == filters.category)
        if filters.priority:
            query = query.filter(ComplaintDB.priority == filters.priority)
        if filters.department:
            query = query.filter(ComplaintDB.department == filters.department)
        if filters.assigned_to:
            query = query.filter(ComplaintDB.assigned_to == filters.assigned_to)

        # Inclusive date range on creation time
        if filters.start_date:
            query = query.filter(ComplaintDB.created_at >= to_naive_utc(filters.start_date))
        if filters.end_date:
            query = query.filter(ComplaintDB.created_at <= to_naive_utc(filters.end_date))

        if filters.search:
            search_term = f"%{escape_like(filters.search)}%"
            query = query.filter(or_(
                ComplaintDB.complaint_id.ilike(search_term, escape="\\"),
                ComplaintDB.email.ilike(search_term, escape="\\"),
                ComplaintDB.description.ilike(search_term, escape="\\"),
                ComplaintDB.name.ilike(search_term, escape="\\"),
            ))

        return query

    def list_complaints(
        self,
        filters: Optional[ComplaintFilters] = None,
        page_request: Optional[PageRequest] = None,
    ) -> Dict[str, Any]:
        """
        One page of complaints plus pagination metadata for the filtered set.
        """
        filters = filters or ComplaintFilters()
        page_request = page_request or PageRequest()

        if page_request.sort_by not in SORT_COLUMNS:
            raise ValidationError("Invalid sort field")
        if page_request.sort_order not in SORT_ORDERS:
            raise ValidationError("Sort order must be asc or desc")
        if page_request.page < 1 or not 1 <= page_request.limit <= MAX_LIMIT:
            raise ValidationError(f"Page must be >= 1 and limit between 1 and {MAX_LIMIT}")

        query = self.filtered_query(filters)
        total = query.count()

        sort_column = SORT_COLUMNS[page_request.sort_by]
        direction = sort_column.asc() if page_request.sort_order == "asc" else sort_column.desc()
        # Storage id as tie-breaker keeps page boundaries stable
        tie_breaker = ComplaintDB.id.asc() if page_request.sort_order == "asc" else ComplaintDB.id.desc()

        offset = (page_request.page - 1) * page_request.limit
        complaints = query.options(
            selectinload(ComplaintDB.assignee),
            selectinload(ComplaintDB.resolver),
            selectinload(ComplaintDB.status_updates),
        ).order_by(direction, tie_breaker).offset(offset).limit(page_request.limit).all()

        return {
            "complaints": [complaint_to_dict(c) for c in complaints],
            "pagination": build_pagination(page_request.page, page_request.limit, total),
        }

    def get_complaint(self, complaint_pk: str) -> Dict[str, Any]:
        """Single complaint with every account reference expanded."""
        complaint = self.db.query(ComplaintDB).options(
            selectinload(ComplaintDB.submitter),
            selectinload(ComplaintDB.assignee),
            selectinload(ComplaintDB.resolver),
            selectinload(ComplaintDB.status_updates).selectinload(StatusUpdateDB.actor),
        ).filter(ComplaintDB.id == complaint_pk).first()

        if not complaint:
            raise NotFoundError("Complaint not found")

        return complaint_to_dict(complaint, detail=True)
