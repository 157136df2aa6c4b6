from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from salon_api.auth.dependencies import get_current_user, require_admin
from salon_api.database import get_db
from salon_api.models.appointment import APPOINTMENT_STATUSES, Appointment
from salon_api.models.user import ADMIN_ROLE, User
from salon_api.routes.errors import raise_for_result
from salon_api.services import appointment_service

router = APIRouter(tags=['appointments'])


def _normalize_time_label(value: str) -> str:
    normalized = ' '.join(value.strip().upper().split())
    if not normalized:
        raise ValueError('Time is required.')
    return normalized


class CreateAppointmentRequest(BaseModel):
    salon_spa_id: int
    date: date
    time: str

    @field_validator('time')
    @classmethod
    def validate_time(cls, value: str) -> str:
        return _normalize_time_label(value)


class UpdateStatusRequest(BaseModel):
    status: str

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in APPOINTMENT_STATUSES:
            raise ValueError('Invalid appointment status.')
        return normalized


class AvailabilityResponse(BaseModel):
    success: bool
    remaining_slots: int
    message: str | None = None


class AppointmentResponse(BaseModel):
    id: int
    user_id: int
    salon_spa_id: int | None = None
    owner_id: int | None = None
    date: date
    time: str
    status: str
    created_at: datetime | None = None
    salon_spa_name: str | None = None
    customer_name: str | None = None


class DashboardStatsResponse(BaseModel):
    total_bookings: int
    canceled_bookings: int
    completed_bookings: int
    upcoming_bookings: int


def to_appointment_response(appointment: Appointment) -> AppointmentResponse:
    return AppointmentResponse(
        id=appointment.id,
        user_id=appointment.user_id,
        salon_spa_id=appointment.salon_spa_id,
        owner_id=appointment.owner_id,
        date=appointment.date,
        time=appointment.time,
        status=appointment.status,
        created_at=appointment.created_at,
        salon_spa_name=appointment.salon_spa.name if appointment.salon_spa else None,
        customer_name=appointment.customer.name if appointment.customer else None,
    )


@router.get('/availability', response_model=AvailabilityResponse)
def check_availability(
    salon_spa_id: int = Query(...),
    slot_date: date = Query(..., alias='date'),
    slot_time: str = Query(..., alias='time'),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    result = appointment_service.check_salon_availability(
        db, salon_spa_id, slot_date, _normalize_time_label(slot_time),
    )
    if result.reason == 'capacity':
        return AvailabilityResponse(success=False, remaining_slots=0, message=result.message)

    data = raise_for_result(result)
    return AvailabilityResponse(success=True, remaining_slots=data['remaining_slots'])


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(
    data: CreateAppointmentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if current_user.role == ADMIN_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Only customers can book appointments.',
        )

    result = appointment_service.book_appointment(db, current_user.id, data.salon_spa_id, data.date, data.time)
    return to_appointment_response(raise_for_result(result))


@router.get('/mine', response_model=list[AppointmentResponse])
def list_my_appointments(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    appointments = raise_for_result(appointment_service.list_appointments_for_customer(db, current_user.id))
    return [to_appointment_response(appointment) for appointment in appointments]


@router.get('/owner', response_model=list[AppointmentResponse])
def list_owner_appointments(
    status_filter: str | None = Query(default=None, alias='status'),
    slot_date: date | None = Query(default=None, alias='date'),
    salon_spa_id: int | None = Query(default=None),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    normalized_status = status_filter.strip().lower() if status_filter else None
    if normalized_status and normalized_status not in APPOINTMENT_STATUSES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid appointment status.')

    result = appointment_service.list_appointments_for_owner(
        db,
        current_user.id,
        status=normalized_status,
        slot_date=slot_date,
        salon_id=salon_spa_id,
    )
    return [to_appointment_response(appointment) for appointment in raise_for_result(result)]


@router.patch('/{appointment_id}/status', response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: int,
    data: UpdateStatusRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    appointment = raise_for_result(appointment_service.get_appointment(db, appointment_id))

    is_customer = appointment.user_id == current_user.id
    is_salon_admin = current_user.role == ADMIN_ROLE and appointment.owner_id == current_user.id
    if not (is_customer or is_salon_admin):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Only the customer or the salon owner can change this appointment.',
        )

    result = appointment_service.set_appointment_status(db, appointment_id, data.status)
    return to_appointment_response(raise_for_result(result))


@router.get('/dashboard', response_model=DashboardStatsResponse)
def dashboard(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    customer_id = None if current_user.role == ADMIN_ROLE else current_user.id
    return raise_for_result(appointment_service.dashboard_stats(db, customer_id=customer_id))
