"""SQLAlchemy models."""
from skyearth.models.user import User

__all__ = ["User"]
