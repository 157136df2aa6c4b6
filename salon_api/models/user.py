"""Account model definitions."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, func
from salon_api.database import Base


USER_ROLE = "user"
ADMIN_ROLE = "admin"
ACCOUNT_ROLES = (USER_ROLE, ADMIN_ROLE)


class User(Base):
    """Represents a customer or salon owner account."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default=USER_ROLE)  # user/admin
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
