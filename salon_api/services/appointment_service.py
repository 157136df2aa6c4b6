"""Availability, booking and status lifecycle for appointments.

Every function takes an open ``Session`` and returns an ``ActionResult``;
persistence errors are rolled back and reported, never retried.
"""

import logging
from datetime import date

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon_api.core import config
from salon_api.models.appointment import APPOINTMENT_STATUSES, BOOKED, CANCELED, COMPLETED, Appointment
from salon_api.models.salon import SalonSpa
from salon_api.scheduling.slots import enumerate_slots, is_working_day
from salon_api.services.results import ActionResult, fail, ok, persistence_failure

logger = logging.getLogger(__name__)

NO_AVAILABLE_SLOTS = 'No available slots'

ALLOWED_TRANSITIONS = {
    BOOKED: {COMPLETED, CANCELED},
    COMPLETED: set(),
    CANCELED: set(),
}


def count_slot_bookings(db: Session, salon_id: int, slot_date: date, slot_time: str) -> int:
    query = db.query(func.count(Appointment.id)).filter(
        Appointment.salon_spa_id == salon_id,
        Appointment.date == slot_date,
        Appointment.time == slot_time,
    )
    if not config.COUNT_ALL_STATUSES_TOWARD_CAPACITY:
        query = query.filter(Appointment.status == BOOKED)
    return query.scalar() or 0


def check_availability(
    db: Session,
    salon_id: int,
    slot_date: date,
    slot_time: str,
    max_per_slot: int,
) -> ActionResult:
    try:
        existing_count = count_slot_bookings(db, salon_id, slot_date, slot_time)
    except SQLAlchemyError as exc:
        return persistence_failure(db, exc, 'availability check')

    if existing_count >= max_per_slot:
        return fail(NO_AVAILABLE_SLOTS, 'capacity', data={'remaining_slots': 0})

    return ok({'remaining_slots': max_per_slot - existing_count})


def check_salon_availability(db: Session, salon_id: int, slot_date: date, slot_time: str) -> ActionResult:
    try:
        salon = db.get(SalonSpa, salon_id)
    except SQLAlchemyError as exc:
        return persistence_failure(db, exc, 'availability check')

    if salon is None:
        return fail('Salon not found.', 'not_found')

    return check_availability(db, salon.id, slot_date, slot_time, salon.max_bookings_per_slot)


def book_appointment(
    db: Session,
    customer_id: int,
    salon_id: int,
    slot_date: date,
    slot_time: str,
    today: date | None = None,
) -> ActionResult:
    today = today or date.today()

    try:
        # Count and insert share one write transaction: FOR UPDATE on the salon row
        # where row locks exist, BEGIN IMMEDIATE on SQLite (enable_sqlite_write_locks).
        salon = db.query(SalonSpa).filter(SalonSpa.id == salon_id).with_for_update().first()
        if salon is None:
            db.rollback()
            return fail('Salon not found.', 'not_found')

        if slot_date < today:
            db.rollback()
            return fail('Appointments cannot be booked in the past.', 'invalid')

        if not is_working_day(slot_date, salon.working_days):
            db.rollback()
            return fail('The salon is closed on the selected date.', 'invalid')

        if slot_time not in enumerate_slots(slot_date, salon.start_time, salon.end_time, salon.slot_duration):
            db.rollback()
            return fail('The selected time is not a bookable slot for this salon.', 'invalid')

        if count_slot_bookings(db, salon.id, slot_date, slot_time) >= salon.max_bookings_per_slot:
            db.rollback()
            return fail(NO_AVAILABLE_SLOTS, 'capacity', data={'remaining_slots': 0})

        appointment = Appointment(
            user_id=customer_id,
            salon_spa_id=salon.id,
            owner_id=salon.owner_id,
            date=slot_date,
            time=slot_time,
            status=BOOKED,
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
    except SQLAlchemyError as exc:
        return persistence_failure(db, exc, 'booking')

    logger.info(
        'Appointment %s booked: salon=%s date=%s time=%s customer=%s',
        appointment.id, salon_id, slot_date, slot_time, customer_id,
    )
    return ok(appointment, 'Appointment booked successfully')


def can_transition(current: str, target: str, appointment_date: date, today: date) -> bool:
    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        return False
    return appointment_date >= today


def set_appointment_status(
    db: Session,
    appointment_id: int,
    new_status: str,
    today: date | None = None,
) -> ActionResult:
    today = today or date.today()
    new_status = (new_status or '').strip().lower()

    if new_status not in APPOINTMENT_STATUSES:
        return fail(f'Invalid appointment status: {new_status or "(empty)"}.', 'invalid')

    try:
        appointment = db.get(Appointment, appointment_id)
        if appointment is None:
            return fail('Appointment not found.', 'not_found')

        if not can_transition(appointment.status, new_status, appointment.date, today):
            if appointment.status != BOOKED:
                message = f'A {appointment.status} appointment cannot be changed.'
            elif appointment.date < today:
                message = 'Past appointments cannot be changed.'
            else:
                message = f'Cannot change status from {appointment.status} to {new_status}.'
            return fail(message, 'invalid')

        previous_status = appointment.status
        appointment.status = new_status
        db.commit()
        db.refresh(appointment)
    except SQLAlchemyError as exc:
        return persistence_failure(db, exc, 'status update')

    logger.info('Appointment %s moved from %s to %s', appointment_id, previous_status, new_status)
    return ok(appointment, 'Appointment status updated successfully')


def list_appointments_for_customer(db: Session, customer_id: int) -> ActionResult:
    try:
        appointments = db.query(Appointment).filter(
            Appointment.user_id == customer_id,
        ).order_by(Appointment.created_at.desc(), Appointment.id.desc()).all()
    except SQLAlchemyError as exc:
        return persistence_failure(db, exc, 'customer appointment listing')

    return ok(appointments)


def list_appointments_for_owner(
    db: Session,
    owner_id: int,
    status: str | None = None,
    slot_date: date | None = None,
    salon_id: int | None = None,
) -> ActionResult:
    try:
        query = db.query(Appointment).filter(Appointment.owner_id == owner_id)
        if status:
            query = query.filter(Appointment.status == status)
        if slot_date:
            query = query.filter(Appointment.date == slot_date)
        if salon_id:
            query = query.filter(Appointment.salon_spa_id == salon_id)

        appointments = query.order_by(Appointment.created_at.desc(), Appointment.id.desc()).all()
    except SQLAlchemyError as exc:
        return persistence_failure(db, exc, 'owner appointment listing')

    return ok(appointments)


def dashboard_stats(db: Session, customer_id: int | None = None, today: date | None = None) -> ActionResult:
    today = today or date.today()

    try:
        query = db.query(Appointment.status, Appointment.date)
        if customer_id is not None:
            query = query.filter(Appointment.user_id == customer_id)
        rows = query.all()
    except SQLAlchemyError as exc:
        return persistence_failure(db, exc, 'dashboard aggregation')

    return ok({
        'total_bookings': len(rows),
        'canceled_bookings': sum(1 for status, _ in rows if status == CANCELED),
        'completed_bookings': sum(1 for status, _ in rows if status == COMPLETED),
        'upcoming_bookings': sum(1 for status, slot_date in rows if status == BOOKED and slot_date >= today),
    })


def get_appointment(db: Session, appointment_id: int) -> ActionResult:
    try:
        appointment = db.get(Appointment, appointment_id)
    except SQLAlchemyError as exc:
        return persistence_failure(db, exc, 'appointment lookup')

    if appointment is None:
        return fail('Appointment not found.', 'not_found')
    return ok(appointment)
