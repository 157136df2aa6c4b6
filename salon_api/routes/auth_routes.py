from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from salon_api.auth.dependencies import get_current_user, require_admin
from salon_api.database import get_db
from salon_api.models.user import ACCOUNT_ROLES, User
from salon_api.routes.errors import raise_for_result
from salon_api.services import account_service, settings_service

router = APIRouter(tags=['auth'])

MIN_PASSWORD_LENGTH = 6


def _normalize_email(value: str) -> str:
    normalized = value.strip().lower()
    if not normalized or '@' not in normalized:
        raise ValueError('A valid email is required.')
    return normalized


def _normalize_role(value: str) -> str:
    normalized = value.strip().lower()
    if normalized not in ACCOUNT_ROLES:
        raise ValueError('Role must be "user" or "admin".')
    return normalized


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str
    role: str = 'user'

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required.')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _normalize_email(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters.')
        return value

    @field_validator('role')
    @classmethod
    def validate_role(cls, value: str) -> str:
        return _normalize_role(value)


class LoginRequest(BaseModel):
    email: str
    password: str
    role: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _normalize_email(value)

    @field_validator('role')
    @classmethod
    def validate_role(cls, value: str) -> str:
        return _normalize_role(value)


class UpdateProfileRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    current_password: str | None = None
    new_password: str | None = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return _normalize_email(value)

    @field_validator('new_password')
    @classmethod
    def validate_new_password(cls, value: str | None) -> str | None:
        if not value:
            return None
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters.')
        return value


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    role: str
    is_active: bool
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    token_type: str
    role: str


class LoginLogResponse(BaseModel):
    id: int
    ip_address: str | None = None
    user_agent: str | None = None
    login_time: datetime | None = None

    class Config:
        from_attributes = True


@router.post('/register', response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    result = account_service.register_user(db, data.name, data.email, data.password, data.role)
    return raise_for_result(result)


@router.post('/login', response_model=TokenResponse)
def login(data: LoginRequest, request: Request, db: Session = Depends(get_db)):
    result = account_service.login_user(
        db,
        data.email,
        data.password,
        data.role,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get('user-agent'),
    )
    return raise_for_result(result)


@router.get('/me', response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.put('/profile', response_model=UserResponse)
def update_profile(
    data: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    result = account_service.update_profile(
        db,
        current_user,
        name=data.name.strip() if data.name else None,
        email=data.email,
        current_password=data.current_password,
        new_password=data.new_password,
    )
    return raise_for_result(result)


@router.get('/login-logs', response_model=list[LoginLogResponse])
def login_logs(
    limit: int = Query(default=10, ge=1, le=100),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return raise_for_result(settings_service.list_login_logs(db, current_user.id, limit))
