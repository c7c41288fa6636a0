"""JWT token service.

Provides organization-scoped bearer token creation and verification.
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from hera_auth.exceptions import InvalidTokenError
from hera_auth.schemas import TokenPayload


class JWTService:
    """Service for JWT token creation and verification.

    Every token carries the caller identity (``sub``) and the tenant it is
    allowed to act for (``organization_id``).

    Examples
    --------
    >>> service = JWTService(secret_key="your-secret-key")
    >>> token = service.create_access_token("pos-gateway", organization_id)
    >>> payload = service.verify_token(token)
    >>> print(payload.organization_id)
    """

    DEFAULT_ACCESS_EXPIRE_HOURS = 24
    ALGORITHM = "HS256"

    def __init__(
        self,
        secret_key: str,
        access_token_expire_hours: int = DEFAULT_ACCESS_EXPIRE_HOURS,
    ):
        """Initialize the JWT service.

        Parameters
        ----------
        secret_key
            Secret key for signing tokens. Must be kept secure.
        access_token_expire_hours
            Hours until access token expires (default 24)
        """
        if not secret_key:
            msg = "JWT secret key cannot be empty"
            raise ValueError(msg)

        self._secret_key = secret_key
        self._access_expire = timedelta(hours=access_token_expire_hours)

    def create_access_token(
        self,
        subject: str,
        organization_id: UUID,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create an access token bound to one organization.

        Parameters
        ----------
        subject
            Identifier of the calling user or integration
        organization_id
            Tenant the bearer may post for
        expires_delta
            Custom expiration time (optional)

        Returns
        -------
        The encoded JWT token string
        """
        now = datetime.now(tz=timezone.utc)
        expire = now + (expires_delta or self._access_expire)

        payload = {
            "sub": subject,
            "organization_id": str(organization_id),
            "type": "access",
            "iat": now,
            "exp": expire,
        }

        return jwt.encode(payload, self._secret_key, algorithm=self.ALGORITHM)

    def verify_token(self, token: str) -> TokenPayload:
        """Verify and decode a JWT token.

        Parameters
        ----------
        token
            The JWT token string to verify

        Returns
        -------
        TokenPayload containing the decoded data

        Raises
        ------
        InvalidTokenError
            If token is invalid, expired, or lacks the organization claim
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.ALGORITHM],
            )

            subject = str(payload["sub"])
            organization_id = UUID(payload["organization_id"])
            exp = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
            token_type = payload.get("type", "access")

            return TokenPayload(
                subject=subject,
                organization_id=organization_id,
                exp=exp,
                token_type=token_type,
            )

        except jwt.ExpiredSignatureError as e:
            raise InvalidTokenError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e
        except (KeyError, ValueError, TypeError) as e:
            raise InvalidTokenError(f"Malformed token payload: {e}") from e
