"""Salon listing management and browsing."""

import logging
import math
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon_api.models.appointment import BOOKED, Appointment
from salon_api.models.salon import SalonSpa
from salon_api.services.results import ActionResult, fail, ok, persistence_failure

logger = logging.getLogger(__name__)

SORT_OPTIONS = ('all', 'nearby', 'price_low_to_high', 'price_high_to_low', 'with_offers')
EARTH_RADIUS_KM = 6371.0


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def _check_owner(salon: SalonSpa | None, owner_id: int) -> ActionResult | None:
    if salon is None:
        return fail('Salon not found.', 'not_found')
    if salon.owner_id != owner_id:
        return fail('Only the owner can manage this salon.', 'forbidden')
    return None


def create_salon(db: Session, owner_id: int, values: dict) -> ActionResult:
    try:
        salon = SalonSpa(owner_id=owner_id, **values)
        db.add(salon)
        db.commit()
        db.refresh(salon)
    except SQLAlchemyError as exc:
        return persistence_failure(db, exc, 'salon creation')

    logger.info('Salon %s created by owner %s', salon.id, owner_id)
    return ok(salon, 'Salon created successfully')


def get_salon(db: Session, salon_id: int) -> ActionResult:
    try:
        salon = db.get(SalonSpa, salon_id)
    except SQLAlchemyError as exc:
        return persistence_failure(db, exc, 'salon lookup')

    if salon is None:
        return fail('Salon not found.', 'not_found')
    return ok(salon)


def list_salons_by_owner(db: Session, owner_id: int) -> ActionResult:
    try:
        salons = db.query(SalonSpa).filter(SalonSpa.owner_id == owner_id).order_by(SalonSpa.id.asc()).all()
    except SQLAlchemyError as exc:
        return persistence_failure(db, exc, 'owner salon listing')
    return ok(salons)


def list_salons(
    db: Session,
    sort: str = 'all',
    latitude: float | None = None,
    longitude: float | None = None,
) -> ActionResult:
    if sort not in SORT_OPTIONS:
        return fail(f'Unsupported sort option: {sort}.', 'invalid')
    if sort == 'nearby' and (latitude is None or longitude is None):
        return fail('Latitude and longitude are required to sort by distance.', 'invalid')

    try:
        query = db.query(SalonSpa)
        if sort == 'with_offers':
            query = query.filter(SalonSpa.offer_status == 'active')
        if sort == 'price_low_to_high':
            query = query.order_by(SalonSpa.min_service_price.asc(), SalonSpa.id.asc())
        elif sort == 'price_high_to_low':
            query = query.order_by(SalonSpa.min_service_price.desc(), SalonSpa.id.asc())
        else:
            query = query.order_by(SalonSpa.id.asc())
        salons = query.all()
    except SQLAlchemyError as exc:
        return persistence_failure(db, exc, 'salon listing')

    if sort == 'nearby':
        located = [salon for salon in salons if salon.latitude is not None and salon.longitude is not None]
        salons = sorted(
            located,
            key=lambda salon: distance_km(latitude, longitude, salon.latitude, salon.longitude),
        )

    return ok(salons)


def update_salon(db: Session, salon_id: int, owner_id: int, values: dict) -> ActionResult:
    try:
        salon = db.get(SalonSpa, salon_id)
        denied = _check_owner(salon, owner_id)
        if denied:
            return denied

        for field, value in values.items():
            setattr(salon, field, value)
        db.commit()
        db.refresh(salon)
    except SQLAlchemyError as exc:
        return persistence_failure(db, exc, 'salon update')

    logger.info('Salon %s updated by owner %s', salon_id, owner_id)
    return ok(salon, 'Salon updated successfully')


def delete_salon(db: Session, salon_id: int, owner_id: int, today: date | None = None) -> ActionResult:
    today = today or date.today()

    try:
        salon = db.get(SalonSpa, salon_id)
        denied = _check_owner(salon, owner_id)
        if denied:
            return denied

        upcoming = db.query(Appointment.id).filter(
            Appointment.salon_spa_id == salon_id,
            Appointment.status == BOOKED,
            Appointment.date >= today,
        ).first()
        if upcoming:
            return fail('This salon still has upcoming booked appointments.', 'conflict')

        # Historical appointments stay, detached from the removed salon.
        db.query(Appointment).filter(Appointment.salon_spa_id == salon_id).update(
            {Appointment.salon_spa_id: None},
            synchronize_session='fetch',
        )
        db.delete(salon)
        db.commit()
    except SQLAlchemyError as exc:
        return persistence_failure(db, exc, 'salon deletion')

    logger.info('Salon %s deleted by owner %s', salon_id, owner_id)
    return ok(message='Salon deleted successfully')
