"""Command-line entry point for loading school data.

Reads a JSON file with users, modules, teaching assignments and class
enrollments and stores it in the database, so the API has teachers and
students to work with. Existing rows are left in place.

Example file::

    {
      "users": [{"username": "tea", "password": "...", "role": "teacher"}],
      "modules": [{"module_id": 1, "name": "1. modul",
                   "start_time": "08:00", "end_time": "09:30"}],
      "assignments": [{"teacher": "tea", "subject": "Math", "class_name": "3.A"}],
      "enrollments": [{"student": "stu", "class_name": "3.A"}]
    }
"""

import argparse
import json
import logging
from pathlib import Path

from core.database import SessionLocal
from core.logging_config import setup_logging
from utils.roster_manager import RosterManager
from utils.user_manager import UserAlreadyExistsError, UserManager

logger = logging.getLogger(__name__)


def seed(data: dict) -> None:
    """Store the users and roster described by ``data``.

    Args:
        data: Parsed seed file.

    Raises:
        ValueError: If an assignment or enrollment names an unknown user.
    """
    with SessionLocal() as db:
        user_manager = UserManager(db)
        roster = RosterManager(db)

        for user in data.get("users", []):
            try:
                user_manager.create_user(
                    username=user["username"],
                    password=user["password"],
                    role=user["role"],
                    display_name=user.get("display_name"),
                )
            except UserAlreadyExistsError:
                logger.info("User %s already exists, skipping", user["username"])

        for module in data.get("modules", []):
            roster.add_module(
                module["module_id"], module["name"], module["start_time"], module["end_time"]
            )

        def user_id(username: str) -> str:
            user = user_manager.get_user_by_username(username)
            if user is None:
                raise ValueError(f"Unknown user: {username}")
            return user.user_id

        for item in data.get("assignments", []):
            roster.add_teaching_assignment(
                user_id(item["teacher"]), item["subject"], item["class_name"]
            )
        for item in data.get("enrollments", []):
            roster.enroll_student(item["class_name"], user_id(item["student"]))

    logger.info(
        "Seeded %d user(s), %d module(s), %d assignment(s), %d enrollment(s)",
        len(data.get("users", [])),
        len(data.get("modules", [])),
        len(data.get("assignments", [])),
        len(data.get("enrollments", [])),
    )


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Load school data into the Roll Call API database.")
    parser.add_argument("seed_file", type=Path, help="JSON file with users and roster")
    args = parser.parse_args()

    setup_logging()
    with args.seed_file.open(encoding="utf-8") as f:
        seed(json.load(f))


if __name__ == "__main__":
    main()
