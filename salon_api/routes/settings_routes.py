from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from salon_api.auth.dependencies import get_current_user, require_admin
from salon_api.database import get_db
from salon_api.models.user import User
from salon_api.routes.errors import raise_for_result
from salon_api.services import settings_service

router = APIRouter(tags=['settings'])

BACKUP_FREQUENCIES = ('daily', 'weekly', 'monthly')


class SystemSettingsResponse(BaseModel):
    site_name: str
    site_description: str
    timezone: str
    language: str
    maintenance_mode: bool
    allow_registration: bool
    email_notifications: bool
    sms_notifications: bool
    auto_backup: bool
    backup_frequency: str


class UpdateSystemSettingsRequest(BaseModel):
    site_name: str | None = None
    site_description: str | None = None
    timezone: str | None = None
    language: str | None = None
    maintenance_mode: bool | None = None
    allow_registration: bool | None = None
    email_notifications: bool | None = None
    sms_notifications: bool | None = None
    auto_backup: bool | None = None
    backup_frequency: str | None = None

    @field_validator('backup_frequency')
    @classmethod
    def validate_backup_frequency(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().lower()
        if normalized not in BACKUP_FREQUENCIES:
            raise ValueError('Backup frequency must be daily, weekly or monthly.')
        return normalized


@router.get('', response_model=SystemSettingsResponse)
def get_settings(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return raise_for_result(settings_service.get_system_settings(db))


@router.put('', response_model=SystemSettingsResponse)
def update_settings(
    data: UpdateSystemSettingsRequest,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return raise_for_result(settings_service.update_system_settings(db, data.model_dump(exclude_none=True)))
