# create_admin.py
"""
Create the initial verified admin account.
Manual maintenance only; skips when the username or email is taken.
"""
import getpass
import os

from carparts.db.session import get_session
from carparts.db.auto_init import auto_init
from carparts.services.user_service import UserService
from run import configure_database


def prompt(label: str, default: str = "") -> str:
    suffix = f" [{default}]" if default else ""
    value = input(f"{label}{suffix}: ").strip()
    return value or default


def create_admin(username: str, email: str, password: str) -> bool:
    db = get_session()
    try:
        user_service = UserService(db)

        if user_service.get_user_by_username(username) or user_service.get_user_by_email(email):
            print(f"User '{username}' / '{email}' already exists, skipping")
            return False

        user_service.create_admin(username=username, email=email, password=password)
        db.commit()
        print(f"Admin '{username}' created")
        return True

    except Exception as e:
        db.rollback()
        print(f"Failed to create admin: {e}")
        raise
    finally:
        db.close()


def main():
    configure_database()
    auto_init()

    username = prompt("Username", os.getenv("ADMIN_USERNAME", "admin"))
    email = prompt("Email", os.getenv("ADMIN_EMAIL", ""))
    password = getpass.getpass("Password: ")
    if not email or not password:
        print("Email and password are required")
        return

    create_admin(username, email, password)


if __name__ == "__main__":
    main()
