"""JWT bearer tokens identifying a user and the project the token was issued for.

Uses app.core.config for secret and algorithm.
"""

from datetime import UTC, datetime, timedelta
from typing import Any, cast

from jose import JWTError, jwt

from app.application.dtos.principal import Principal
from app.core.config import get_settings


def create_access_token(
    data: dict[str, Any],
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token with the given claims.

    Args:
        data: Claims to encode (sub, projectId, projectName).
        expires_delta: Optional TTL; else uses settings.access_token_expire_minutes.

    Returns:
        Encoded JWT string.
    """
    settings = get_settings()
    to_encode = data.copy()
    if expires_delta is not None:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(
            minutes=settings.access_token_expire_minutes
        )
    to_encode["exp"] = expire
    encoded = jwt.encode(
        to_encode,
        settings.secret_key.get_secret_value(),
        algorithm=settings.algorithm,
    )
    return cast(str, encoded)


def create_principal_token(
    user_id: str,
    project_name: str,
    project_id: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Issue a token for a user acting within one project."""
    return create_access_token(
        {"sub": user_id, "projectId": project_id or project_name, "projectName": project_name},
        expires_delta,
    )


def verify_token(token: str) -> dict[str, Any]:
    """Verify and decode a JWT. Returns the payload.

    Raises:
        ValueError: If token is invalid, expired, or missing required claims.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key.get_secret_value(),
            algorithms=[settings.algorithm],
            options={"require_exp": True, "require_sub": True},
        )
    except JWTError as e:
        raise ValueError(f"Invalid token: {e!s}") from e
    if not payload.get("projectName"):
        raise ValueError("Token missing required claim: projectName")
    return payload


def principal_from_token(token: str) -> Principal:
    """Verify a token and return the caller it identifies.

    Raises:
        ValueError: If the token does not verify.
    """
    payload = verify_token(token)
    return Principal(
        user_id=payload["sub"],
        project_id=payload.get("projectId") or payload["projectName"],
        project_name=payload["projectName"],
    )
