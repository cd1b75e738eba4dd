"""
JWT token-based authentication for admin endpoints.
A verified token becomes an AdminIdentity that is passed explicitly into handlers.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import HTTPException, status, Header, Request
from gallery_api.config import settings
from gallery_api.utils.auth import verify_admin_credentials


ALGORITHM = "HS256"
ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class AdminIdentity:
    """Verified identity of the caller, scoped to one request."""
    username: str
    role: str
    expires_at: Optional[datetime] = None


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Dictionary of claims to include in token
        expires_delta: Optional custom expiration time

    Returns:
        str: Encoded JWT token
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    to_encode.update({
        "exp": expire,
        "iat": now,
        "type": "access"
    })

    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str) -> AdminIdentity:
    """
    Verify and decode a JWT token.

    Raises:
        HTTPException: 401 if token is invalid, expired, or malformed;
            403 if the token does not carry the admin role
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid token", "message": "Authentication token is invalid or expired"},
            headers={"WWW-Authenticate": "Bearer"}
        )

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid token type", "message": "Token is not an access token"},
            headers={"WWW-Authenticate": "Bearer"}
        )

    if payload.get("role") != ADMIN_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "Forbidden", "message": "Admin privileges required"}
        )

    exp = payload.get("exp")
    return AdminIdentity(
        username=payload.get("sub", ""),
        role=payload["role"],
        expires_at=datetime.fromtimestamp(exp, tz=timezone.utc) if exp else None,
    )


def require_admin(
    request: Request,
    authorization: Optional[str] = Header(None, description="Bearer token (falls back to the auth cookie)")
) -> AdminIdentity:
    """
    FastAPI dependency admitting admin-only requests.
    Reads the Bearer token from the Authorization header, or from the httpOnly cookie.

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired
    """
    token = None

    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            token = parts[1]

    if not token:
        token = request.cookies.get(settings.AUTH_COOKIE_NAME)

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Missing token", "message": "Authentication required"},
            headers={"WWW-Authenticate": "Bearer"}
        )

    return verify_token(token)


def authenticate_admin(username: str, password: str) -> dict:
    """
    Authenticate the admin and return the claims for a new token.

    Raises:
        HTTPException: 401 if credentials are invalid, 500 if auth is not configured
    """
    try:
        valid = verify_admin_credentials(username, password)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Authentication not configured", "message": str(e)}
        )

    if not valid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid credentials", "message": "Username or password is incorrect"}
        )

    return {
        "sub": username,
        "role": ADMIN_ROLE,
    }
