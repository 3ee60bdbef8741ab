"""User model."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime
from skyearth.database import Base


class User(Base):
    """User model for authentication."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    # bcrypt hash, never the plaintext
    password_hash = Column("password", String(255), nullable=False)
    created_at = Column("createdAt", DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(
        "updatedAt",
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"
