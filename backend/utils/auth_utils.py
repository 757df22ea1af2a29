import logging
from datetime import timedelta
from typing import Dict, Any, Iterable, Optional

from fastapi import HTTPException, status, Request
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError
from passlib.context import CryptContext

from config import Settings
from utils.formatting import utcnow

logger = logging.getLogger(__name__)

bcrypt_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return bcrypt_context.hash(password)


def is_password_hash(stored: str) -> bool:
    """True when the stored value is a bcrypt hash rather than a legacy plain-text password."""
    return bool(stored) and bcrypt_context.identify(stored) is not None


def verify_password(plain: str, stored: str) -> bool:
    if is_password_hash(stored):
        return bcrypt_context.verify(plain, stored)
    # Accounts imported from the old system still hold plain-text passwords
    return plain == stored


def create_access_token(settings: Settings, data: Dict[str, Any]) -> str:
    to_encode = data.copy()
    expire = utcnow() + timedelta(minutes=settings.jwt_expires_minutes)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def token_payload_for(user) -> Dict[str, Any]:
    position = user.position.value if hasattr(user.position, "value") else user.position
    return {
        "sub": user.username,
        "id": user.id,
        "username": user.username,
        "fname": user.fname,
        "position": position,
    }


def _extract_bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None
    # The token is expected to be in the format "Bearer <token>"
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


def _decode(request: Request, token: str) -> Dict[str, Any]:
    settings: Settings = request.app.state.settings
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def get_current_user(request: Request) -> Dict[str, Any]:
    """
    FastAPI dependency that validates the bearer JWT from the Authorization header.

    Usage:
        @router.get("/secure-data")
        def secure_endpoint(user: dict = Depends(get_current_user)):
            ...
    """
    token = _extract_bearer_token(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required",
        )

    try:
        payload = _decode(request, token)
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired"
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )

    request.state.user = payload
    return payload


def get_optional_user(request: Request) -> Optional[Dict[str, Any]]:
    """Like get_current_user, but an absent or invalid token yields None instead of a 401."""
    token = _extract_bearer_token(request)
    if not token:
        return None
    try:
        payload = _decode(request, token)
    except JWTError:
        # Expired tokens are JWTErrors too; the request simply continues anonymously
        logger.debug("Ignoring invalid bearer token on optional-auth route")
        return None
    request.state.user = payload
    return payload


def require_role(roles: Iterable[str]):
    """Dependency factory gating a route on the token's ``position`` claim."""
    allowed = set(roles)

    def role_checker(request: Request) -> Dict[str, Any]:
        user = get_optional_user(request)
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication required",
            )
        if user.get("position") not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return role_checker


def get_user_identifier(user: Optional[Dict[str, Any]]) -> str:
    if not user:
        return "system"
    return str(user.get("username") or user.get("id") or "system")
