"""
Business logic services for the Contact Consolidation API
Contains the consolidation engine, its storage primitives and its errors
"""

from .errors import ClusterIntegrityError, IdentityError, InvalidIdentifyRequest
from .identity_service import IdentityService, identity_service

__all__ = [
    "ClusterIntegrityError",
    "IdentityError",
    "IdentityService",
    "InvalidIdentifyRequest",
    "identity_service"
]
