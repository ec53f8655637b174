"""Items API: user accounts and item CRUD behind bearer-token authentication."""

__version__ = "1.0.0"
