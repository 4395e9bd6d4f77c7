#!/usr/bin/env python3
"""
Seed Script
Creates (or promotes) the admin account and optionally loads demo complaints.

Usage:
    python -m scripts.seed [<email> <password> [<name>]] [--samples] [--clear]

Without arguments the SEED_ADMIN_EMAIL / SEED_ADMIN_PASSWORD / SEED_ADMIN_NAME
settings are used.

Example:
    python -m scripts.seed admin@railmadad.com securepassword123 "Control Room" --samples
"""
import sys
import os
from uuid import uuid4

# Add the parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.orm import Session
from app import config
from app.auth import AuthContext, hash_password
from app.database import SessionLocal, init_db
from app.models.db_models import AccountDB, AccountRole, ComplaintDB, ComplaintSequenceDB, ComplaintStatus
from app.services.complaints import ComplaintService


SAMPLE_COMPLAINTS = [
    {
        "data": {
            "name": "Rajesh Kumar",
            "email": "rajesh.kumar@example.com",
            "phone_number": "9876543210",
            "pnr": "1234567890",
            "train_number": "12345",
            "train_name": "Rajdhani Express",
            "category": "cleanliness",
            "description": "The coach was not properly cleaned. There was garbage under the seats and the washroom was dirty.",
            "station": "New Delhi",
            "coach": "A1",
            "seat_number": "45",
        },
    },
    {
        "data": {
            "name": "Priya Sharma",
            "email": "priya.sharma@example.com",
            "phone_number": "9123456789",
            "train_number": "12301",
            "train_name": "Howrah Rajdhani",
            "category": "staff_behavior",
            "description": "The TTE was very rude and did not help with our queries regarding the seat arrangement.",
            "station": "Howrah",
            "coach": "B2",
        },
        "priority": "high",
        "status": ComplaintStatus.IN_PROGRESS,
    },
    {
        "data": {
            "name": "Amit Patel",
            "email": "amit.patel@example.com",
            "phone_number": "9988776655",
            "pnr": "9876543210",
            "train_number": "12951",
            "train_name": "Mumbai Rajdhani",
            "category": "facilities",
            "description": "AC was not working in our coach. It was very uncomfortable during the journey.",
            "station": "Mumbai Central",
            "coach": "C1",
            "seat_number": "12",
        },
        "priority": "urgent",
        "status": ComplaintStatus.RESOLVED,
        "resolution_details": "AC was repaired and tested. Issue resolved.",
    },
    {
        "data": {
            "name": "Sunita Verma",
            "email": "sunita.verma@example.com",
            "phone_number": "9871234567",
            "train_number": "12009",
            "train_name": "Shatabdi Express",
            "category": "food_quality",
            "description": "The food served was stale and had a bad smell. Received cold food.",
            "station": "Chennai Central",
        },
        "priority": "high",
    },
    {
        "data": {
            "name": "Vikram Singh",
            "email": "vikram.singh@example.com",
            "phone_number": "9654321098",
            "pnr": "5678901234",
            "train_number": "12002",
            "train_name": "Bhopal Shatabdi",
            "category": "security",
            "description": "I witnessed theft in the coach. Security personnel were not available when needed.",
            "station": "Bhopal Junction",
            "coach": "D3",
        },
        "priority": "urgent",
        "status": ComplaintStatus.IN_PROGRESS,
    },
    {
        "data": {
            "name": "Anita Reddy",
            "email": "anita.reddy@example.com",
            "train_number": "12430",
            "train_name": "Lucknow Mail",
            "category": "ticketing",
            "description": "Unable to book tickets online. Website was showing errors repeatedly.",
        },
        "priority": "low",
        "status": ComplaintStatus.RESOLVED,
        "resolution_details": "Technical issue was fixed. Booking system is now working properly.",
    },
    {
        "data": {
            "name": "Manoj Gupta",
            "email": "manoj.gupta@example.com",
            "phone_number": "9876509876",
            "train_number": "12423",
            "train_name": "Dibrugarh Rajdhani",
            "category": "maintenance",
            "description": "The berth was broken and could not be used. Requested change but no action was taken.",
            "coach": "E1",
            "seat_number": "28",
        },
    },
]


def create_admin_user(db: Session, email: str, password: str, name: str) -> AccountDB:
    """Create the admin account, or promote an existing account with that email."""
    email = email.strip().lower()
    existing = db.query(AccountDB).filter(AccountDB.email == email).first()

    if existing:
        if existing.role == AccountRole.ADMIN.value:
            print(f"Admin '{email}' already exists.")
        else:
            existing.role = AccountRole.ADMIN.value
            existing.is_active = True
            db.commit()
            print(f"Upgraded existing user '{email}' to admin role.")
        return existing

    admin_user = AccountDB(
        id=str(uuid4()),
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=AccountRole.ADMIN.value,
        is_active=True,
    )
    db.add(admin_user)
    db.commit()

    print(f"Admin user created successfully!")
    print(f"  Email: {email}")
    print(f"  Name: {name}")
    print(f"  Role: admin")
    return admin_user


def seed_sample_complaints(db: Session, admin: AccountDB) -> int:
    """Submit the demo complaints through the complaint service."""
    if db.query(ComplaintDB.id).first() is not None:
        print("Sample complaints already exist.")
        return 0

    service = ComplaintService(db)
    actor = AuthContext(account_id=admin.id, email=admin.email, role=admin.role)

    for sample in SAMPLE_COMPLAINTS:
        complaint = service.submit(sample["data"])
        if "priority" in sample:
            service.update(complaint.id, {"priority": sample["priority"]}, actor)
        if "status" in sample:
            service.update_status(
                complaint.id,
                sample["status"],
                actor,
                comment="Seeded",
                resolution_details=sample.get("resolution_details"),
            )
        print(f"  {complaint.complaint_id} ({complaint.category})")

    print(f"Created {len(SAMPLE_COMPLAINTS)} sample complaints.")
    return len(SAMPLE_COMPLAINTS)


def main():
    flags = {arg for arg in sys.argv[1:] if arg.startswith("--")}
    positional = [arg for arg in sys.argv[1:] if not arg.startswith("--")]

    if len(positional) not in (0, 2, 3) or flags - {"--samples", "--clear"}:
        print(__doc__)
        sys.exit(1)

    email = positional[0] if positional else config.SEED_ADMIN_EMAIL
    password = positional[1] if positional else config.SEED_ADMIN_PASSWORD
    name = positional[2] if len(positional) == 3 else config.SEED_ADMIN_NAME

    # Basic validation
    if len(password) < 6:
        print("Error: Password must be at least 6 characters.")
        sys.exit(1)

    if "@" not in email:
        print("Error: Invalid email format.")
        sys.exit(1)

    # Ensure tables exist
    init_db()

    db: Session = SessionLocal()
    try:
        if "--clear" in flags:
            # Counter rows go too so numbering restarts at 0001
            for complaint in db.query(ComplaintDB).all():
                db.delete(complaint)
            db.query(ComplaintSequenceDB).delete(synchronize_session=False)
            db.commit()
            print("Cleared existing complaints.")

        admin = create_admin_user(db, email, password, name)

        if "--samples" in flags:
            seed_sample_complaints(db, admin)
    except Exception as e:
        print(f"Error seeding database: {e}")
        db.rollback()
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
