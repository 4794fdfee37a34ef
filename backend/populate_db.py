import os
import logging

# Add 'backend' folder to Python path
import sys
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from dotenv import load_dotenv

load_dotenv()

# Database models and setup
from database import SessionLocal, init_db
from models.users import User, UserRole
from models.category import Category
import models.leave_request  # noqa: F401  (registers the LeaveRequest mapper)
from utils.hashing import get_password_hash

logger = logging.getLogger("populate_db")

# Configuration
DEFAULT_CATEGORIES = [
    (1, "Ferie"),
    (2, "Permesso personale"),
    (3, "Malattia"),
    (4, "Congedo parentale"),
    (5, "Formazione"),
]
MANAGER_EMAIL = os.getenv("SEED_MANAGER_EMAIL", "responsabile@example.com")
MANAGER_PASSWORD = os.getenv("SEED_MANAGER_PASSWORD", "cambiami123")
# End Configuration


def seed_categories(session) -> int:
    """Insert the default leave categories that are not there yet (matched by id or description)."""
    created = 0
    for category_id, description in DEFAULT_CATEGORIES:
        exists = session.query(Category).filter(
            (Category.id == category_id) | (Category.description == description)
        ).first()
        if exists:
            continue
        session.add(Category(id=category_id, description=description))
        created += 1
    session.commit()
    return created


def seed_manager(session) -> bool:
    """Create an initial manager account when none exists."""
    if session.query(User).filter(User.role == UserRole.MANAGER.value).first():
        return False

    session.add(User(
        first_name="Admin",
        last_name="Responsabile",
        email=MANAGER_EMAIL,
        password_hash=get_password_hash(MANAGER_PASSWORD),
        role=UserRole.MANAGER.value,
    ))
    session.commit()
    return True


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    init_db()
    session = SessionLocal()
    try:
        created = seed_categories(session)
        logger.info("Categories created: %d", created)
        if seed_manager(session):
            logger.info("Manager account created: %s", MANAGER_EMAIL)
        else:
            logger.info("A manager account already exists, skipping")
    finally:
        session.close()


if __name__ == "__main__":
    main()
