import os
from datetime import time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from salon_api.auth.passwords import hash_password  # noqa: E402
from salon_api.database import Base  # noqa: E402
from salon_api.models.appointment import Appointment  # noqa: E402
from salon_api.models.salon import SalonSpa  # noqa: E402
from salon_api.models.settings import LoginLog, SystemSettings  # noqa: E402
from salon_api.models.user import User  # noqa: E402

ALL_DAYS = ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday']
TABLES = [User.__table__, SalonSpa.__table__, Appointment.__table__, SystemSettings.__table__, LoginLog.__table__]


@pytest.fixture
def db():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=TABLES)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine, tables=list(reversed(TABLES)))


@pytest.fixture
def make_user(db):
    def _make_user(email='customer@example.com', role='user', name='Customer', password='secret123'):
        user = User(name=name, email=email, hashed_password=hash_password(password), role=role, is_active=True)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_salon(db):
    def _make_salon(owner, **overrides):
        values = {
            'name': 'Lotus Spa',
            'description': 'Massage and facials',
            'address': '1 Main St',
            'city': 'Springfield',
            'state': 'IL',
            'zip': '62701',
            'working_days': list(ALL_DAYS),
            'start_time': time(9, 0),
            'end_time': time(11, 0),
            'slot_duration': 30,
            'max_bookings_per_slot': 2,
            'min_service_price': 20,
            'max_service_price': 80,
            'offer_status': 'inactive',
        }
        values.update(overrides)
        salon = SalonSpa(owner_id=owner.id, **values)
        db.add(salon)
        db.commit()
        db.refresh(salon)
        return salon

    return _make_salon


@pytest.fixture
def admin(make_user):
    return make_user(email='owner@example.com', role='admin', name='Owner')


@pytest.fixture
def customer(make_user):
    return make_user()
