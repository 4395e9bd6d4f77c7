"""
Rail Complaint Desk - Authentication Utilities
Password hashing, JWT token pairs, and the identity gate dependencies
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Any

import bcrypt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError
from sqlalchemy.orm import Session

from . import config
from .database import get_db
from .errors import UnauthorizedError, ForbiddenError, TokenExpiredError, TokenInvalidError
from .models.db_models import AccountDB, AccountRole

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

# Bearer token extraction; a missing header is reported by authenticate()
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Identity of the caller, produced by authenticate() and passed by argument."""
    account_id: str
    email: str
    role: str


# =============================================================================
# PASSWORDS
# =============================================================================

def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    password_bytes = password.encode('utf-8')
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password_bytes, salt).decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    password_bytes = plain_password.encode('utf-8')
    hashed_bytes = hashed_password.encode('utf-8')
    try:
        return bcrypt.checkpw(password_bytes, hashed_bytes)
    except ValueError:
        # Stored digest is not a bcrypt hash
        return False


# =============================================================================
# TOKENS
# =============================================================================

def sign_token(claims: Dict[str, Any], key: str, ttl: timedelta) -> str:
    """Sign claims with an expiry ttl from now."""
    now = datetime.now(timezone.utc)
    to_encode = dict(claims)
    to_encode["iat"] = now
    to_encode["exp"] = now + ttl
    return jwt.encode(to_encode, key, algorithm=config.JWT_ALGORITHM)


def verify_token(
    token: str,
    key: str,
    token_type: str,
    expired_message: str = "Token expired",
    invalid_message: str = "Invalid token",
) -> Dict[str, Any]:
    """
    Decode a token and check its type.

    Raises TokenExpiredError for a well-signed token past its expiry and
    TokenInvalidError for everything else.
    """
    try:
        payload = jwt.decode(token, key, algorithms=[config.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise TokenExpiredError(expired_message)
    except JWTError:
        raise TokenInvalidError(invalid_message)

    if payload.get("type") != token_type or not payload.get("sub"):
        raise TokenInvalidError(invalid_message)
    return payload


def create_token_pair(account_id: str, email: str, role: str) -> Dict[str, str]:
    """Issue an access token and a refresh token, each with its own key and lifetime."""
    claims = {"sub": account_id, "email": email, "role": role}
    access_token = sign_token(
        {**claims, "type": ACCESS_TOKEN},
        config.JWT_SECRET_KEY,
        timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    refresh_token = sign_token(
        {**claims, "type": REFRESH_TOKEN},
        config.JWT_REFRESH_SECRET_KEY,
        timedelta(days=config.REFRESH_TOKEN_EXPIRE_DAYS),
    )
    return {"accessToken": access_token, "refreshToken": refresh_token}


def decode_access_token(token: str) -> Dict[str, Any]:
    return verify_token(token, config.JWT_SECRET_KEY, ACCESS_TOKEN)


def decode_refresh_token(token: str) -> Dict[str, Any]:
    return verify_token(
        token,
        config.JWT_REFRESH_SECRET_KEY,
        REFRESH_TOKEN,
        expired_message="Refresh token expired",
        invalid_message="Invalid refresh token",
    )


# =============================================================================
# IDENTITY GATE
# =============================================================================

def load_active_account(db: Session, account_id: str) -> AccountDB:
    """Fetch an account that still exists and is active, or raise Unauthorized."""
    account = db.query(AccountDB).filter(AccountDB.id == account_id).first()
    if account is None or not account.is_active:
        raise UnauthorizedError("User no longer exists or is inactive")
    return account


def context_from_token(db: Session, token: str) -> AuthContext:
    payload = decode_access_token(token)
    account = load_active_account(db, payload["sub"])
    return AuthContext(account_id=account.id, email=account.email, role=account.role)


def authenticate(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> AuthContext:
    """
    Dependency requiring a valid bearer access token.
    The account is re-checked on every request.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("No token provided")
    return context_from_token(db, credentials.credentials)


def optional_authenticate(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[AuthContext]:
    """Same checks as authenticate(), but any failure yields an anonymous caller."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return context_from_token(db, credentials.credentials)
    except UnauthorizedError:
        return None


def authorize(context: Optional[AuthContext], *roles: AccountRole) -> AuthContext:
    """
    Role gate. Called at the top of every admin operation.
    """
    if context is None:
        raise UnauthorizedError("Authentication required")

    allowed = {role.value if isinstance(role, AccountRole) else role for role in roles}
    if context.role not in allowed:
        raise ForbiddenError()
    return context
