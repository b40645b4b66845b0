"""Bearer token verification for resolving the requesting user.

Tokens are issued by the platform's auth service; this service only
checks them against the shared secret and reads the user id from `sub`.
Every failure surfaces as ValueError so callers can treat the request as
anonymous.
"""

from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from tasksearch.core.config import get_settings

_REQUIRED_CLAIMS = {"require_exp": True, "require_sub": True}


def verify_token(token: str) -> dict[str, Any]:
    """Decoded claims of a valid, unexpired token carrying exp and sub.

    Raises:
        ValueError: Bad signature, expired, malformed or missing claims.
    """
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.secret_key.get_secret_value(),
            algorithms=[settings.algorithm],
            options=_REQUIRED_CLAIMS,
        )
    except ExpiredSignatureError as e:
        raise ValueError("Token expired") from e
    except JWTError as e:
        raise ValueError(f"Invalid token: {e!s}") from e


def user_id_from_token(token: str) -> int:
    """Numeric user id from the token's sub claim.

    Raises:
        ValueError: If the token is invalid or sub is not an integer.
    """
    subject = verify_token(token).get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Token subject is not a user id: {subject!r}") from e
