"""
Identity & Access Services

Login, refresh-token rotation and profile lookup.
"""

from .identity_service import IdentityService, account_summary

__all__ = [
    'IdentityService',
    'account_summary',
]
