"""
Identity Service

Login, token rotation and profile lookup for staff accounts.
Token signing and password hashing live in app.auth.
"""
import logging
from typing import Any, Dict

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...auth import (
    AuthContext,
    create_token_pair,
    decode_refresh_token,
    load_active_account,
    verify_password,
)
from ...errors import NotFoundError, UnauthorizedError
from ...models.db_models import AccountDB, utcnow
from ..complaints.serializers import isoformat

logger = logging.getLogger(__name__)


def account_summary(account: AccountDB) -> Dict[str, Any]:
    """Outward view of an account. The password digest is never included."""
    return {
        "id": account.id,
        "name": account.name,
        "email": account.email,
        "role": account.role,
    }


class IdentityService:
    """Issues and rotates token pairs for accounts."""

    def __init__(self, db: Session):
        self.db = db

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Authenticate by email/password and issue a token pair.

        lastLogin is written only after every check has passed.
        """
        account = self.db.query(AccountDB).filter(
            func.lower(AccountDB.email) == email.strip().lower()
        ).first()

        if account is None:
            raise UnauthorizedError("Invalid credentials")

        if not account.is_active:
            raise UnauthorizedError("Account is inactive. Please contact administrator.")

        if not verify_password(password, account.password_hash):
            raise UnauthorizedError("Invalid credentials")

        tokens = create_token_pair(account.id, account.email, account.role)

        account.last_login = utcnow()
        self.db.commit()

        logger.info(f"User logged in: {account.email}")
        return {"user": account_summary(account), **tokens}

    def refresh(self, refresh_token: str) -> Dict[str, str]:
        """Verify a refresh token and issue a fresh pair for a still-active account."""
        payload = decode_refresh_token(refresh_token)
        account = load_active_account(self.db, payload["sub"])

        tokens = create_token_pair(account.id, account.email, account.role)
        logger.info(f"Token refreshed for user: {account.email}")
        return tokens

    def get_profile(self, context: AuthContext) -> Dict[str, Any]:
        account = self.db.query(AccountDB).filter(AccountDB.id == context.account_id).first()
        if account is None:
            raise NotFoundError("User not found")

        return {
            **account_summary(account),
            "phoneNumber": account.phone_number,
            "isActive": account.is_active,
            "lastLogin": isoformat(account.last_login),
            "createdAt": isoformat(account.created_at),
        }

    def logout(self, context: AuthContext) -> Dict[str, str]:
        # Tokens are stateless; the client discards them
        logger.info(f"User logged out: {context.email}")
        return {"message": "Logged out successfully"}
