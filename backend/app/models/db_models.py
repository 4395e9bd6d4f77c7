"""
Rail Complaint Desk - SQLAlchemy ORM Models
Persistent storage for accounts, complaints and their audit trail
"""
from datetime import datetime, timezone
from enum import Enum
from sqlalchemy import Column, String, Integer, Float, DateTime, Text, JSON, ForeignKey, Boolean, Index
from sqlalchemy.orm import relationship
from ..database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp; every DateTime column stores naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# =============================================================================
# ENUMS
# =============================================================================

class AccountRole(str, Enum):
    """Roles recognised by the role gate."""
    ADMIN = "admin"
    USER = "user"


class ComplaintStatus(str, Enum):
    """Complaint lifecycle states."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class ComplaintPriority(str, Enum):
    """Triage priority."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ComplaintCategory(str, Enum):
    """Closed set of complaint categories."""
    CLEANLINESS = "cleanliness"
    STAFF_BEHAVIOR = "staff_behavior"
    FACILITIES = "facilities"
    SECURITY = "security"
    TICKETING = "ticketing"
    FOOD_QUALITY = "food_quality"
    MAINTENANCE = "maintenance"
    OTHER = "other"


# Rank used when sorting by priority / status instead of alphabetical order
PRIORITY_RANK = {
    ComplaintPriority.LOW.value: 1,
    ComplaintPriority.MEDIUM.value: 2,
    ComplaintPriority.HIGH.value: 3,
    ComplaintPriority.URGENT.value: 4,
}

STATUS_RANK = {
    ComplaintStatus.PENDING.value: 1,
    ComplaintStatus.IN_PROGRESS.value: 2,
    ComplaintStatus.RESOLVED.value: 3,
    ComplaintStatus.REJECTED.value: 4,
}


# =============================================================================
# IDENTITY
# =============================================================================

class AccountDB(Base):
    """Staff or registered rider account."""
    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True)  # UUID
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)  # stored lower-cased
    password_hash = Column(String(255), nullable=False)
    phone_number = Column(String(20), nullable=True)
    role = Column(String(20), nullable=False, default=AccountRole.USER.value)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_accounts_role_active", "role", "is_active"),
    )


# =============================================================================
# COMPLAINTS
# =============================================================================

class ComplaintSequenceDB(Base):
    """
    Per-year complaint number counter.

    last_value is only ever advanced with a single UPDATE ... RETURNING,
    so concurrent submissions never observe the same value.
    """
    __tablename__ = "complaint_sequences"

    year = Column(Integer, primary_key=True, autoincrement=False)
    last_value = Column(Integer, nullable=False, default=0)


class ComplaintDB(Base):
    """Passenger complaint."""
    __tablename__ = "complaints"

    id = Column(String(36), primary_key=True)  # UUID
    complaint_id = Column(String(20), unique=True, nullable=False, index=True)  # CMP-YYYY-NNNN

    # Submitter
    user_id = Column(String(36), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone_number = Column(String(20), nullable=True)

    # Journey context
    pnr = Column(String(10), nullable=True)
    train_number = Column(String(50), nullable=True)
    train_name = Column(String(100), nullable=True)
    journey_date = Column(DateTime, nullable=True)
    station = Column(String(100), nullable=True)
    coach = Column(String(20), nullable=True)
    seat_number = Column(String(20), nullable=True)

    # Classification
    category = Column(String(30), nullable=False, index=True)
    subcategory = Column(String(100), nullable=True)
    description = Column(Text, nullable=False)
    # Reserved for an external classifier; never written here
    ai_suggested_category = Column(String(30), nullable=True)
    ai_confidence = Column(Float, nullable=True)

    # Triage
    status = Column(String(20), nullable=False, default=ComplaintStatus.PENDING.value, index=True)
    priority = Column(String(20), nullable=False, default=ComplaintPriority.MEDIUM.value, index=True)
    assigned_to = Column(String(36), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    department = Column(String(100), nullable=True, index=True)

    # Stored URLs only
    attachments = Column(JSON, nullable=True, default=list)

    # Resolution
    resolution_details = Column(Text, nullable=True)
    resolved_at = Column(DateTime, nullable=True)
    resolved_by = Column(String(36), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    submitter = relationship("AccountDB", foreign_keys=[user_id])
    assignee = relationship("AccountDB", foreign_keys=[assigned_to])
    resolver = relationship("AccountDB", foreign_keys=[resolved_by])
    status_updates = relationship(
        "StatusUpdateDB",
        back_populates="complaint",
        order_by="StatusUpdateDB.id",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_complaints_assigned_status", "assigned_to", "status"),
    )


class StatusUpdateDB(Base):
    """
    Audit trail entry. Rows are inserted, never updated or deleted
    (other than with their complaint); the autoincrement id is the order.
    """
    __tablename__ = "complaint_status_updates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    complaint_pk = Column(String(36), ForeignKey("complaints.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False)
    updated_by = Column(String(36), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow)
    comment = Column(String(500), nullable=True)

    complaint = relationship("ComplaintDB", back_populates="status_updates")
    actor = relationship("AccountDB", foreign_keys=[updated_by])


# =============================================================================
# ROUTING (inert: persisted, not applied to complaints)
# =============================================================================

class RoutingRuleDB(Base):
    """Keyword-to-department routing rule, stored for a future dispatcher."""
    __tablename__ = "routing_rules"

    id = Column(String(36), primary_key=True)  # UUID
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    category = Column(String(30), nullable=False)
    keywords = Column(JSON, nullable=False, default=list)
    department = Column(String(100), nullable=False)
    priority = Column(Integer, nullable=False, default=1)  # 1-10, higher wins
    assign_to_user_id = Column(String(36), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(String(36), ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_routing_rules_category_active", "category", "is_active"),
        Index("ix_routing_rules_department_active", "department", "is_active"),
    )
