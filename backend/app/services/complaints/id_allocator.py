"""
Complaint Number Allocator

Hands out human-facing complaint numbers (CMP-YYYY-NNNN) from a per-year
counter row. The counter is advanced with one UPDATE ... RETURNING, so two
concurrent submissions can never be given the same number.
"""
import logging
import re
from datetime import datetime
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...errors import InternalError
from ...models.db_models import ComplaintDB, ComplaintSequenceDB, utcnow

logger = logging.getLogger(__name__)

COMPLAINT_ID_REGEX = r"^CMP-\d{4}-\d{4}$"
COMPLAINT_ID_PATTERN = re.compile(COMPLAINT_ID_REGEX)


def format_complaint_id(year: int, sequence: int) -> str:
    """CMP-<year>-<sequence zero-padded to 4 digits>."""
    return f"CMP-{year}-{sequence:04d}"


class ComplaintNumberAllocator:
    """Reserves complaint numbers inside the caller's transaction."""

    def __init__(self, db: Session):
        self.db = db

    def next_complaint_id(self, now: Optional[datetime] = None) -> str:
        year = (now or utcnow()).year
        return format_complaint_id(year, self.reserve(year))

    def reserve(self, year: int) -> int:
        """
        Advance the counter for `year` and return the new value.

        The first reservation of a year creates the counter row, seeded from
        the highest number already issued that year. If another transaction
        creates the row first, the unique key rejects ours and we fall back
        to incrementing theirs.
        """
        value = self._increment(year)
        if value is not None:
            return value

        first_value = self._highest_issued(year) + 1
        try:
            with self.db.begin_nested():
                self.db.add(ComplaintSequenceDB(year=year, last_value=first_value))
                self.db.flush()
            return first_value
        except IntegrityError:
            logger.info(f"Complaint counter for {year} created concurrently; incrementing")

        value = self._increment(year)
        if value is None:
            raise InternalError("Could not reserve a complaint number")
        return value

    def _increment(self, year: int) -> Optional[int]:
        stmt = (
            update(ComplaintSequenceDB)
            .where(ComplaintSequenceDB.year == year)
            .values(last_value=ComplaintSequenceDB.last_value + 1)
            .returning(ComplaintSequenceDB.last_value)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def _highest_issued(self, year: int) -> int:
        """Largest sequence already present in complaints for `year` (0 if none)."""
        prefix = f"CMP-{year}-"
        row = self.db.query(ComplaintDB.complaint_id).filter(
            ComplaintDB.complaint_id.like(f"{prefix}%")
        ).order_by(
            func.length(ComplaintDB.complaint_id).desc(),
            ComplaintDB.complaint_id.desc(),
        ).first()

        if row is None:
            return 0
        suffix = row[0][len(prefix):]
        return int(suffix) if suffix.isdigit() else 0
