# storefront/repositories/user_repo.py
import uuid

from storefront.models.user import User
from storefront.repositories.record_store import USERS, RecordStore


class UserRepository:
    """
    Credential store: user lookups and inserts on top of the record store.

    Responsibilities:
      - Pure persistence (no HTTP, no hashing, no business rules)
    """

    def __init__(self, store: RecordStore):
        self.store = store

    def get_by_id(self, user_id: uuid.UUID) -> User | None:
        """Return a User by primary key, or None if not found."""
        return self.store.find_one(USERS, {"id": user_id})

    def get_by_email(self, email: str) -> User | None:
        """Return a User by unique email, or None if not found."""
        return self.store.find_one(USERS, {"email": email})

    def create(self, user: User) -> User:
        """Insert a new User and return it."""
        self.store.insert(USERS, user)
        return user
