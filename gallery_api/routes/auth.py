"""
Admin authentication routes.
Login issues a JWT (returned in the body and set as an httpOnly cookie);
the other endpoints consume it.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
import logging

from gallery_api.config import settings
from gallery_api.schemas import (
    AdminUser,
    ChangePasswordRequest,
    ChangePasswordResponse,
    LoginRequest,
    LoginResponse,
    VerifyResponse,
)
from gallery_api.utils.auth import hash_password, verify_password
from gallery_api.utils.jwt_auth import AdminIdentity, authenticate_admin, create_access_token, require_admin
from gallery_api.utils.rate_limit import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
@limiter.limit(RATE_LIMITS["login"])
async def login(request: Request, response: Response, credentials: LoginRequest):
    """
    Exchange the admin username and password for an access token.
    Limited to 5 attempts per minute per client.
    """
    try:
        claims = authenticate_admin(credentials.username, credentials.password)
    except HTTPException:
        logger.warning(f"Failed admin login for '{credentials.username}'")
        raise

    token = create_access_token(claims)
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )

    logger.info(f"Admin login successful: {claims['sub']}")
    return LoginResponse(token=token, user=AdminUser(username=claims["sub"], role=claims["role"]))


@router.post("/logout")
async def logout(response: Response, identity: AdminIdentity = Depends(require_admin)):
    """Clear the auth cookie. Tokens are stateless and simply expire."""
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    logger.info(f"Admin logout: {identity.username}")
    return {"success": True, "message": "Logged out successfully"}


@router.get("/verify", response_model=VerifyResponse)
async def verify(identity: AdminIdentity = Depends(require_admin)):
    return VerifyResponse(user=AdminUser(username=identity.username, role=identity.role))


@router.post("/change-password", response_model=ChangePasswordResponse)
@limiter.limit(RATE_LIMITS["change_password"])
async def change_password(
    request: Request,
    data: ChangePasswordRequest,
    identity: AdminIdentity = Depends(require_admin)
):
    """
    Verify the current password and return a bcrypt hash of the new one.

    Credentials live in configuration, so the new hash must be copied into
    ADMIN_PASSWORD_HASH before it takes effect.
    """
    if not verify_password(data.current_password, settings.ADMIN_PASSWORD_HASH):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid password", "message": "Current password is incorrect"}
        )

    new_hash = hash_password(data.new_password)
    logger.info(f"New admin password hash generated for {identity.username}")
    return ChangePasswordResponse(
        message="Password changed successfully. Update ADMIN_PASSWORD_HASH with the new hash.",
        new_password_hash=new_hash,
    )
