"""User and UserGroup SQLAlchemy models"""

from sqlalchemy import Column, Integer, Text, DateTime, CheckConstraint, UniqueConstraint

from .base import Base, utc_now


class User(Base):
    """User model representing people who act on documents.

    Users are referenced as actors by every audit record and can be
    assigned to documents. Authentication lives outside this service.
    """
    __tablename__ = "user"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(Text, nullable=False)
    email = Column(Text, nullable=True)
    first_name = Column(Text, nullable=True)
    last_name = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="ACTIVE", server_default="ACTIVE")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint("username", name="uq_user_username"),
        CheckConstraint("status IN ('ACTIVE', 'DISABLED')", name="ck_user_status"),
    )

    @property
    def full_name(self) -> str:
        """First and last name, falling back to the username."""
        parts = [part for part in (self.first_name, self.last_name) if part]
        return " ".join(parts) if parts else self.username


class UserGroup(Base):
    """Named group of users that documents can be assigned to."""
    __tablename__ = "user_group"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (
        UniqueConstraint("name", name="uq_user_group_name"),
    )
