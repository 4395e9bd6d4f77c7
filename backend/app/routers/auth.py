"""
Rail Complaint Desk - Authentication Router
Handles login, token refresh, current profile and logout.
"""
import logging

from fastapi import APIRouter, Depends
from pydantic import EmailStr, Field
from sqlalchemy.orm import Session

from ..database import get_db
from ..auth import AuthContext, authenticate
from ..responses import success_response
from ..services.identity import IdentityService
from .common import CamelModel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=6)


class RefreshRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1)


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.post("/login")
def login(request: LoginRequest, db: Session = Depends(get_db)):
    """
    Authenticate staff and return the account summary with a token pair.
    """
    service = IdentityService(db)
    return success_response(service.login(request.email, request.password))


@router.post("/refresh")
def refresh_token(request: RefreshRequest, db: Session = Depends(get_db)):
    """
    Exchange a valid refresh token for a new token pair.
    """
    service = IdentityService(db)
    return success_response(service.refresh(request.refresh_token))


@router.get("/me")
def get_me(
    context: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db)
):
    """
    Get current authenticated account profile.
    """
    return success_response(IdentityService(db).get_profile(context))


@router.post("/logout")
def logout(
    context: AuthContext = Depends(authenticate),
    db: Session = Depends(get_db)
):
    """
    Logout (client-side token removal; only logged here).
    """
    return success_response(IdentityService(db).logout(context))
