"""Salon/spa model definitions."""

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Time, func
from salon_api.database import Base


OFFER_STATUSES = ("active", "inactive")


class SalonSpa(Base):
    """A salon or spa listing managed by an admin account."""
    __tablename__ = "salon_spas"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)

    name = Column(String, nullable=False)
    description = Column(String, nullable=False)
    address = Column(String, nullable=False)
    city = Column(String, nullable=False)
    state = Column(String, nullable=False)
    zip = Column(String, nullable=False)
    location_name = Column(String)
    latitude = Column(Float)
    longitude = Column(Float)

    working_days = Column(JSON, nullable=False, default=list)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    break_start_time = Column(Time)
    break_end_time = Column(Time)
    slot_duration = Column(Integer, nullable=False, default=30)  # minutes
    max_bookings_per_slot = Column(Integer, nullable=False, default=1)

    min_service_price = Column(Float, nullable=False, default=0)
    max_service_price = Column(Float, nullable=False, default=0)
    offer_status = Column(String, nullable=False, default="inactive")

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
