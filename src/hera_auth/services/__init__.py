"""Authentication services."""

from hera_auth.services.jwt_service import JWTService

__all__ = ["JWTService"]
