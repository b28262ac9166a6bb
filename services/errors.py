"""
Errors raised by the consolidation engine
Storage failures are not wrapped: SQLAlchemy exceptions reach the caller as-is
"""


class IdentityError(Exception):
    """Base class for consolidation errors"""


class InvalidIdentifyRequest(IdentityError, ValueError):
    """Neither an email nor a phone number was supplied"""


class ClusterIntegrityError(IdentityError, RuntimeError):
    """Stored linkage breaks the one-hop primary/secondary forest"""
