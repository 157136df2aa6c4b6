from datetime import date, datetime, time

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.orm import Session

from salon_api.auth.dependencies import get_current_user, require_admin
from salon_api.database import get_db
from salon_api.models.salon import OFFER_STATUSES
from salon_api.models.user import User
from salon_api.routes.errors import raise_for_result
from salon_api.scheduling.slots import WEEKDAY_NAMES, salon_slot_labels
from salon_api.services import salon_service

router = APIRouter(tags=['salons'])

REQUIRED_TEXT_FIELDS = ('name', 'description', 'address', 'city', 'state', 'zip')


class SalonSpaRequest(BaseModel):
    name: str
    description: str
    address: str
    city: str
    state: str
    zip: str
    location_name: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    working_days: list[str]
    start_time: time
    end_time: time
    break_start_time: time | None = None
    break_end_time: time | None = None
    slot_duration: int = 30
    max_bookings_per_slot: int = 1
    min_service_price: float = 0
    max_service_price: float = 0
    offer_status: str = 'inactive'

    @field_validator(*REQUIRED_TEXT_FIELDS)
    @classmethod
    def validate_required_text(cls, value: str, info) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError(f'{info.field_name.replace("_", " ").capitalize()} is required.')
        return normalized

    @field_validator('working_days')
    @classmethod
    def validate_working_days(cls, value: list[str]) -> list[str]:
        normalized = []
        for day in value:
            day_name = day.strip().lower()
            if day_name not in WEEKDAY_NAMES:
                raise ValueError(f'Unknown working day: {day}.')
            if day_name not in normalized:
                normalized.append(day_name)
        if not normalized:
            raise ValueError('At least one working day is required.')
        return normalized

    @field_validator('slot_duration')
    @classmethod
    def validate_slot_duration(cls, value: int) -> int:
        if value <= 0:
            raise ValueError('Slot duration must be greater than zero.')
        return value

    @field_validator('max_bookings_per_slot')
    @classmethod
    def validate_max_bookings(cls, value: int) -> int:
        if value < 1:
            raise ValueError('Max bookings per slot must be at least 1.')
        return value

    @field_validator('offer_status')
    @classmethod
    def validate_offer_status(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in OFFER_STATUSES:
            raise ValueError('Offer status must be "active" or "inactive".')
        return normalized

    @model_validator(mode='after')
    def validate_schedule(self):
        if self.start_time >= self.end_time:
            raise ValueError('Start time must be before end time.')

        if (self.break_start_time is None) != (self.break_end_time is None):
            raise ValueError('Break start and end times must be set together.')

        if self.break_start_time is not None:
            if not (self.start_time <= self.break_start_time < self.break_end_time <= self.end_time):
                raise ValueError('Break must fall within working hours and end after it starts.')

        if self.min_service_price < 0 or self.min_service_price > self.max_service_price:
            raise ValueError('Minimum price must be non-negative and not exceed the maximum price.')

        return self


class SalonSpaResponse(BaseModel):
    id: int
    owner_id: int
    name: str
    description: str
    address: str
    city: str
    state: str
    zip: str
    location_name: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    working_days: list[str]
    start_time: time
    end_time: time
    break_start_time: time | None = None
    break_end_time: time | None = None
    slot_duration: int
    max_bookings_per_slot: int
    min_service_price: float
    max_service_price: float
    offer_status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class SlotListResponse(BaseModel):
    salon_spa_id: int
    date: date
    slots: list[str]


class MessageResponse(BaseModel):
    message: str


@router.get('', response_model=list[SalonSpaResponse])
def list_salons(
    sort: str = Query(default='all'),
    latitude: float | None = Query(default=None, ge=-90, le=90),
    longitude: float | None = Query(default=None, ge=-180, le=180),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return raise_for_result(salon_service.list_salons(db, sort.strip().lower(), latitude, longitude))


@router.get('/mine', response_model=list[SalonSpaResponse])
def list_my_salons(current_user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return raise_for_result(salon_service.list_salons_by_owner(db, current_user.id))


@router.post('', response_model=SalonSpaResponse, status_code=status.HTTP_201_CREATED)
def create_salon(
    data: SalonSpaRequest,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return raise_for_result(salon_service.create_salon(db, current_user.id, data.model_dump()))


@router.get('/{salon_id}', response_model=SalonSpaResponse)
def get_salon(salon_id: int, current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return raise_for_result(salon_service.get_salon(db, salon_id))


@router.put('/{salon_id}', response_model=SalonSpaResponse)
def update_salon(
    salon_id: int,
    data: SalonSpaRequest,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return raise_for_result(salon_service.update_salon(db, salon_id, current_user.id, data.model_dump()))


@router.delete('/{salon_id}', response_model=MessageResponse)
def delete_salon(salon_id: int, current_user: User = Depends(require_admin), db: Session = Depends(get_db)):
    result = salon_service.delete_salon(db, salon_id, current_user.id)
    raise_for_result(result)
    return MessageResponse(message=result.message)


@router.get('/{salon_id}/slots', response_model=SlotListResponse)
def list_salon_slots(
    salon_id: int,
    slot_date: date = Query(..., alias='date'),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    salon = raise_for_result(salon_service.get_salon(db, salon_id))
    return SlotListResponse(salon_spa_id=salon.id, date=slot_date, slots=salon_slot_labels(salon, slot_date))
