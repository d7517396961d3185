#!/usr/bin/env python3
"""
Seed the database with a default admin and sample employees.

Usage:
    python scripts/seed_users.py

Accounts that already exist (by employee ID or email) are left untouched.
"""

import logging
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from docdesk.config import settings  # noqa: E402
from docdesk.core.exceptions import ConflictError  # noqa: E402
from docdesk.db.session import Database  # noqa: E402
from docdesk.models.user import UserRole  # noqa: E402
from docdesk.schemas.auth import SignupRequest  # noqa: E402
from docdesk.services.users import UserService  # noqa: E402

logger = logging.getLogger("seed_users")

DEFAULT_ADMIN = {
    "employee_id": "ADMIN001",
    "name": "System Administrator",
    "email": "admin@company.com",
    "password": "Admin123!",
    "department": "IT",
    "position": "System Administrator",
    "phone_number": "+1234567890",
}

SAMPLE_USERS = [
    {
        "employee_id": "EMP001",
        "name": "John Doe",
        "email": "john.doe@company.com",
        "password": "User123!",
        "department": "Engineering",
        "position": "Software Developer",
        "phone_number": "+1234567891",
    },
    {
        "employee_id": "EMP002",
        "name": "Jane Smith",
        "email": "jane.smith@company.com",
        "password": "User123!",
        "department": "Marketing",
        "position": "Marketing Manager",
        "phone_number": "+1234567892",
    },
    {
        "employee_id": "EMP003",
        "name": "Mike Johnson",
        "email": "mike.johnson@company.com",
        "password": "User123!",
        "department": "HR",
        "position": "HR Specialist",
        "phone_number": "+1234567893",
    },
    {
        "employee_id": "EMP004",
        "name": "Sarah Wilson",
        "email": "sarah.wilson@company.com",
        "password": "User123!",
        "department": "Finance",
        "position": "Financial Analyst",
        "phone_number": "+1234567894",
    },
]


def seed(database: Database) -> int:
    """Create missing accounts; returns how many were created."""
    created = 0
    accounts = [(DEFAULT_ADMIN, UserRole.ADMIN)] + [(u, UserRole.USER) for u in SAMPLE_USERS]
    with database.session() as db:
        users = UserService(db)
        for data, role in accounts:
            try:
                user = users.register(SignupRequest(**data), role=role)
            except ConflictError as e:
                logger.info(f"Skipping {data['employee_id']}: {e.message}")
                continue
            created += 1
            logger.info(f"Created {role.value}: {user.name} ({user.employee_id})")
    return created


def main():
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s %(message)s")
    database = Database(settings.DATABASE_URL).open()
    try:
        created = seed(database)
    finally:
        database.close()

    print(f"Seeded {created} account(s).")
    print("Admin - Employee ID: ADMIN001, Password: Admin123!")
    print("User  - Employee ID: EMP001, Password: User123!")


if __name__ == "__main__":
    main()
