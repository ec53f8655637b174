"""SQLAlchemy models for the items API."""

from __future__ import annotations

from .item import Item
from .user import User

__all__ = ["Item", "User"]
