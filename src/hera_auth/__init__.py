"""HERA Auth - bearer token verification.

Tokens are issued by the identity provider in front of HERA; this package
only knows how to mint them for integration use and verify them on
incoming requests. Each token is bound to exactly one organization.

Usage:
    from hera_auth import JWTService, InvalidTokenError
"""

from hera_auth.exceptions import AuthError, InvalidTokenError
from hera_auth.schemas import TokenPayload
from hera_auth.services import JWTService

__all__ = [
    # Services
    "JWTService",
    # Schemas
    "TokenPayload",
    # Exceptions
    "AuthError",
    "InvalidTokenError",
]
