"""System settings and login audit models."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, func
from salon_api.database import Base


class SystemSettings(Base):
    """Site-wide settings. The table holds at most one row."""
    __tablename__ = "system_settings"

    id = Column(Integer, primary_key=True)
    site_name = Column(String)
    site_description = Column(String)
    timezone = Column(String)
    language = Column(String)
    maintenance_mode = Column(Boolean, default=False)
    allow_registration = Column(Boolean, default=True)
    email_notifications = Column(Boolean, default=True)
    sms_notifications = Column(Boolean, default=False)
    auto_backup = Column(Boolean, default=True)
    backup_frequency = Column(String, default="daily")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class LoginLog(Base):
    __tablename__ = "login_logs"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    ip_address = Column(String)
    user_agent = Column(String)
    login_time = Column(DateTime, server_default=func.now())
