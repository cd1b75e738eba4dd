#!/usr/bin/env python3
"""
Admin password tool.

    python generate_password_hash.py            generate ADMIN_PASSWORD_HASH
    python generate_password_hash.py --check    test a password against the configured hash
"""
import getpass
import sys

from gallery_api.config import settings
from gallery_api.utils.auth import MIN_PASSWORD_LENGTH, hash_password, verify_password


def generate() -> int:
    print("This will generate a bcrypt hash for the gallery admin password.")
    print("Copy the output to your .env file as ADMIN_PASSWORD_HASH")
    print()

    password = getpass.getpass("Enter admin password: ")
    if len(password) < MIN_PASSWORD_LENGTH:
        print(f"\nError: Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return 1

    if password != getpass.getpass("Confirm password: "):
        print("\nError: Passwords do not match")
        return 1

    print("\nGenerating hash (this may take a moment)...")
    print("\nCopy this line to your .env file:\n")
    print(f"ADMIN_PASSWORD_HASH={hash_password(password)}")
    print("\nKeep this hash secret and never commit it to version control!")
    return 0


def check() -> int:
    if not settings.ADMIN_PASSWORD_HASH:
        print("ADMIN_PASSWORD_HASH is not set")
        return 1

    password = getpass.getpass(f"Password for {settings.ADMIN_USERNAME}: ")
    if verify_password(password, settings.ADMIN_PASSWORD_HASH):
        print("Password matches")
        return 0

    print("Password does not match")
    return 1


def main() -> int:
    print("=" * 60)
    print("Gallery Admin Password Tool")
    print("=" * 60)
    print()

    if "--check" in sys.argv[1:]:
        return check()
    return generate()


if __name__ == "__main__":
    sys.exit(main())
