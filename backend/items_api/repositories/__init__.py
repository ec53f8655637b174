"""Repository layer for database operations."""

from .item import ItemRepository
from .user import DuplicateUserError, UserRepository

__all__ = ["DuplicateUserError", "ItemRepository", "UserRepository"]
