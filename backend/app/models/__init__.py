"""Rail Complaint Desk - Data Models"""
from .db_models import (
    # Enums
    AccountRole, ComplaintStatus, ComplaintPriority, ComplaintCategory,
    # Tables
    AccountDB, ComplaintDB, ComplaintSequenceDB, StatusUpdateDB, RoutingRuleDB,
    utcnow,
)

__all__ = [
    "AccountRole", "ComplaintStatus", "ComplaintPriority", "ComplaintCategory",
    "AccountDB", "ComplaintDB", "ComplaintSequenceDB", "StatusUpdateDB", "RoutingRuleDB",
    "utcnow",
]
