import logging
from typing import Any, Dict, Optional

import jwt
from fastapi import Header, HTTPException, Request, status

from .config import Settings
from .errors import AuthenticationError, ConfigurationError

logger = logging.getLogger(__name__)


class TokenVerifier:
    """Verifies HMAC-signed JWTs and extracts the username claim."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        issuer: Optional[str] = None,
        leeway: int = 0,
    ):
        if not secret:
            raise ConfigurationError("JWT secret is not configured")
        self._secret = secret
        self.algorithm = algorithm
        self.issuer = issuer
        self.leeway = leeway

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenVerifier":
        return cls(
            settings.jwt_secret.get_secret_value(),
            algorithm=settings.jwt_algorithm,
            issuer=settings.jwt_issuer,
            leeway=settings.jwt_leeway_seconds,
        )

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                leeway=self.leeway,
            )
        except jwt.PyJWTError as e:
            raise AuthenticationError(f"Invalid token: {e}") from e

    def verify(self, token: str) -> Optional[str]:
        """Return the username carried by a valid token, or None when it has none."""
        claims = self.decode(token)
        username = claims.get("username") or claims.get("sub")
        if not isinstance(username, str) or not username:
            return None
        return username


def require_authenticated_user(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> Optional[str]:
    """Router dependency guarding every invoice route.

    The header carries the raw token; no scheme prefix is stripped. The
    identity is informational only, so a valid token without a username
    claim is accepted.
    """
    verifier: Optional[TokenVerifier] = getattr(request.app.state, "token_verifier", None)
    if verifier is None:
        logger.error("Token verifier is not configured", extra={"path": request.url.path})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )

    if not authorization:
        logger.warning("Missing Authorization header", extra={"path": request.url.path})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header is required",
        )

    try:
        username = verifier.verify(authorization)
    except AuthenticationError as e:
        logger.warning(f"Authentication failed: {e.message}", extra={"path": request.url.path})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)

    request.state.user = username
    if username is None:
        logger.info("User authenticated: token carries no username claim")
    else:
        logger.info(f"User authenticated: {username}", extra={"user": username})
    return username
