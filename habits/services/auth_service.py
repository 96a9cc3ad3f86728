import uuid

from jose import JWTError, jwt

from habits.config import settings


def decode_access_token(token: str) -> uuid.UUID:
    """Verify an access token from the auth provider. Returns the user id."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise ValueError("Invalid or expired token")

    if payload.get("type", "access") != "access":
        raise ValueError("Invalid token type")

    try:
        return uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise ValueError("Invalid token subject")
