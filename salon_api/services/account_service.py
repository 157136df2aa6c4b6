"""Account registration, login and profile maintenance."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salon_api.auth import jwt_handler
from salon_api.auth.passwords import hash_password, verify_password
from salon_api.models.user import User
from salon_api.services.results import ActionResult, fail, ok, persistence_failure
from salon_api.services.settings_service import record_login, registration_allowed

logger = logging.getLogger(__name__)


def register_user(db: Session, name: str, email: str, password: str, role: str) -> ActionResult:
    try:
        if not registration_allowed(db):
            return fail('Registration is currently disabled.', 'forbidden')

        if db.query(User.id).filter(User.email == email).first():
            return fail('An account with this email already exists.', 'conflict')

        user = User(
            name=name,
            email=email,
            hashed_password=hash_password(password),
            role=role,
            is_active=True,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as exc:
        return persistence_failure(db, exc, 'registration')

    logger.info('Registered %s account %s', role, user.id)
    return ok(user, 'Registration successful')


def login_user(
    db: Session,
    email: str,
    password: str,
    role: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> ActionResult:
    try:
        user = db.query(User).filter(User.email == email).first()
    except SQLAlchemyError as exc:
        return persistence_failure(db, exc, 'login')

    if user is None:
        return fail('User not found.', 'unauthorized')
    if user.role != role:
        return fail('Incorrect role for this account.', 'unauthorized')
    if not verify_password(password, user.hashed_password):
        return fail('Incorrect password.', 'unauthorized')
    if not user.is_active:
        return fail('Account is disabled.', 'forbidden')

    logged = record_login(db, user.id, ip_address, user_agent)
    if not logged.success:
        logger.warning('Login for account %s succeeded but was not recorded: %s', user.id, logged.message)

    token = jwt_handler.create_access_token(subject=str(user.id), role=user.role)
    logger.info('Account %s logged in', user.id)
    return ok({'access_token': token, 'token_type': 'bearer', 'role': user.role}, 'Login successful')


def update_profile(
    db: Session,
    user: User,
    name: str | None = None,
    email: str | None = None,
    current_password: str | None = None,
    new_password: str | None = None,
) -> ActionResult:
    if new_password:
        if not current_password or not verify_password(current_password, user.hashed_password):
            return fail('Current password is incorrect.', 'invalid')

    try:
        if email and email != user.email:
            taken = db.query(User.id).filter(User.email == email, User.id != user.id).first()
            if taken:
                return fail('An account with this email already exists.', 'conflict')
            user.email = email
        if name:
            user.name = name
        if new_password:
            user.hashed_password = hash_password(new_password)
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as exc:
        return persistence_failure(db, exc, 'profile update')

    return ok(user, 'Profile updated successfully')
