"""Appointment model definitions."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import relationship
from salon_api.database import Base
from salon_api.models.salon import SalonSpa
from salon_api.models.user import User


BOOKED = "booked"
COMPLETED = "completed"
CANCELED = "canceled"
APPOINTMENT_STATUSES = (BOOKED, COMPLETED, CANCELED)


class Appointment(Base):
    """Represents a booked slot at a salon."""
    __tablename__ = "appointments"
    __table_args__ = (
        Index("idx_appointments_slot", "salon_spa_id", "date", "time"),
        Index("idx_appointments_owner_created", "owner_id", "created_at"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    salon_spa_id = Column(Integer, ForeignKey("salon_spas.id", ondelete="SET NULL"), index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), index=True)
    date = Column(Date, nullable=False)
    time = Column(String, nullable=False)  # slot label, e.g. "9:30 AM"
    status = Column(String, nullable=False, default=BOOKED)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    salon_spa = relationship(SalonSpa, lazy="joined")
    customer = relationship(User, foreign_keys=[user_id], lazy="joined")
