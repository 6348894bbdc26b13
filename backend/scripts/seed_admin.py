#!/usr/bin/env python
"""Seed script to create the initial admin account.

Registration codes only create submitter and moderator accounts, so the
first admin is created here. The admin can then issue registration codes
and change roles through the API.

Usage:
    python backend/scripts/seed_admin.py

Environment Variables:
    DATABASE_URL: SQLAlchemy connection string
    ADMIN_ID: External identity reference of the admin (required)
    ADMIN_EMAIL: Email for admin user (default: admin@example.com)
    ADMIN_NAME: Display name for admin user (default: System Administrator)
    PRINT_TOKEN: If "true", print a signed claims token for local testing
"""

import os
import sys

from siteverify.auth.jwt import create_access_token
from siteverify.auth.roles import UserRole
from siteverify.database import SessionLocal
from siteverify.models.user import User


def main():
    """Create initial admin user."""
    admin_id = os.getenv("ADMIN_ID")
    if not admin_id:
        print("ERROR: ADMIN_ID environment variable is required")
        print("Example: ADMIN_ID=auth0|admin-1 python seed_admin.py")
        sys.exit(1)

    admin_email = os.getenv("ADMIN_EMAIL", "admin@example.com")
    admin_name = os.getenv("ADMIN_NAME", "System Administrator")

    session = SessionLocal()

    try:
        if session.get(User, admin_id) is not None:
            print(f"ERROR: User {admin_id} already exists")
            sys.exit(1)

        admin_user = User(
            id=admin_id,
            role=UserRole.ADMIN.value,
            full_name=admin_name,
            email=admin_email,
        )

        session.add(admin_user)
        session.commit()

        print("SUCCESS: Admin user created")
        print(f"  ID:    {admin_user.id}")
        print(f"  Email: {admin_user.email}")
        print(f"  Name:  {admin_user.full_name}")
        print(f"  Role:  {admin_user.role}")

        if os.getenv("PRINT_TOKEN", "false").lower() == "true":
            print(f"  Token: {create_access_token(admin_user.id, admin_user.role)}")

    except ValueError as e:
        session.rollback()
        print(f"ERROR: Invalid admin data: {e}")
        sys.exit(1)

    finally:
        session.close()


if __name__ == "__main__":
    main()
