"""
Complaint Services

Complaint lifecycle, audit trail, complaint numbering and staff queries.

- ComplaintService: submit / update / track / delete
- ComplaintNumberAllocator: atomic per-year CMP-YYYY-NNNN numbers
- ComplaintQueryEngine: filtered, paginated staff listings
- check_status_transition: single hook for status-change rules
"""

from .complaint_service import ComplaintService
from .id_allocator import (
    ComplaintNumberAllocator,
    COMPLAINT_ID_PATTERN,
    COMPLAINT_ID_REGEX,
    format_complaint_id,
)
from .query_engine import (
    ComplaintQueryEngine,
    ComplaintFilters,
    PageRequest,
    build_pagination,
    MAX_LIMIT,
)
from .transitions import check_status_transition, ALLOWED_TRANSITIONS

__all__ = [
    'ComplaintService',
    'ComplaintNumberAllocator',
    'COMPLAINT_ID_PATTERN',
    'COMPLAINT_ID_REGEX',
    'format_complaint_id',
    'ComplaintQueryEngine',
    'ComplaintFilters',
    'PageRequest',
    'build_pagination',
    'MAX_LIMIT',
    'check_status_transition',
    'ALLOWED_TRANSITIONS',
]
