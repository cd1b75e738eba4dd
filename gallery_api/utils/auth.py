"""
Password utilities for admin access.
Uses bcrypt for secure password hashing.
"""
import hmac

import bcrypt

from gallery_api.config import settings

MIN_PASSWORD_LENGTH = 6


def hash_password(password: str, rounds: int = 12) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password
        rounds: bcrypt cost factor

    Returns:
        Hashed password string
    """
    # bcrypt only looks at the first 72 bytes
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8')[:72], salt)
    return hashed.decode('utf-8')


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Verify a password against a bcrypt hash.
    A malformed hash counts as a mismatch.
    """
    try:
        return bcrypt.checkpw(
            password.encode('utf-8')[:72],
            hashed_password.encode('utf-8')
        )
    except ValueError:
        return False


def verify_admin_credentials(username: str, password: str) -> bool:
    """
    Check a username/password pair against the configured admin account.

    Raises:
        ValueError: If ADMIN_PASSWORD_HASH is not configured
    """
    if not settings.ADMIN_PASSWORD_HASH:
        raise ValueError("ADMIN_PASSWORD_HASH not configured")

    username_ok = hmac.compare_digest(username.encode('utf-8'), settings.ADMIN_USERNAME.encode('utf-8'))
    # Always run bcrypt so a wrong username costs the same as a wrong password
    password_ok = verify_password(password, settings.ADMIN_PASSWORD_HASH)
    return username_ok and password_ok
