"""User model."""

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from portfolio.models.base import Base, TimestampMixin, UUIDMixin


class User(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    display_name = Column(String(100), nullable=False)

    # Relationships
    projects = relationship("Project", back_populates="creator", passive_deletes=True)

    @property
    def search_name(self) -> str:
        """Name shown in search documents; falls back to the email local part."""
        return self.display_name or self.email.split("@")[0]
