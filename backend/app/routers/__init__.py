"""Rail Complaint Desk - API Routers"""
from .auth import router as auth_router
from .complaints import router as complaints_router
from .admin import router as admin_router
from .dashboard import router as dashboard_router

__all__ = [
    "auth_router",
    "complaints_router",
    "admin_router",
    "dashboard_router",
]
