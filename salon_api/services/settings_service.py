"""Site-wide settings and login audit trail."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon_api.models.settings import LoginLog, SystemSettings
from salon_api.services.results import ActionResult, ok, persistence_failure

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = {
    'site_name': 'Salon & Spa Booking',
    'site_description': 'Appointment booking for salons and spas',
    'timezone': 'UTC',
    'language': 'en-US',
    'maintenance_mode': False,
    'allow_registration': True,
    'email_notifications': True,
    'sms_notifications': False,
    'auto_backup': True,
    'backup_frequency': 'daily',
}


def settings_as_dict(settings: SystemSettings | None) -> dict:
    if settings is None:
        return dict(DEFAULT_SETTINGS)
    return {
        key: default if getattr(settings, key) is None else getattr(settings, key)
        for key, default in DEFAULT_SETTINGS.items()
    }


def get_system_settings(db: Session) -> ActionResult:
    try:
        settings = db.query(SystemSettings).order_by(SystemSettings.id.asc()).first()
    except SQLAlchemyError as exc:
        return persistence_failure(db, exc, 'settings lookup')
    return ok(settings_as_dict(settings))


def update_system_settings(db: Session, changes: dict) -> ActionResult:
    changes = {key: value for key, value in changes.items() if value is not None and key in DEFAULT_SETTINGS}

    try:
        settings = db.query(SystemSettings).order_by(SystemSettings.id.asc()).first()
        if settings is None:
            settings = SystemSettings(**{**DEFAULT_SETTINGS, **changes})
            db.add(settings)
        else:
            for key, value in changes.items():
                setattr(settings, key, value)
        db.commit()
        db.refresh(settings)
    except SQLAlchemyError as exc:
        return persistence_failure(db, exc, 'settings update')

    logger.info('System settings updated: %s', ', '.join(sorted(changes)) or 'no changes')
    return ok(settings_as_dict(settings), 'System settings updated successfully')


def registration_allowed(db: Session) -> bool:
    settings = db.query(SystemSettings.allow_registration).order_by(SystemSettings.id.asc()).first()
    return settings is None or settings.allow_registration is not False


def record_login(db: Session, user_id: int, ip_address: str | None, user_agent: str | None) -> ActionResult:
    try:
        log = LoginLog(user_id=user_id, ip_address=ip_address, user_agent=user_agent)
        db.add(log)
        db.commit()
        db.refresh(log)
    except SQLAlchemyError as exc:
        return persistence_failure(db, exc, 'login logging')
    return ok(log)


def list_login_logs(db: Session, user_id: int, limit: int = 10) -> ActionResult:
    try:
        logs = db.query(LoginLog).filter(LoginLog.user_id == user_id).order_by(
            LoginLog.login_time.desc(), LoginLog.id.desc(),
        ).limit(limit).all()
    except SQLAlchemyError as exc:
        return persistence_failure(db, exc, 'login log listing')
    return ok(logs)
