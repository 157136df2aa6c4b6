import threading
import time as time_module
from datetime import date, time

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from salon_api.database import Base, enable_sqlite_write_locks
from salon_api.models.appointment import Appointment
from salon_api.models.salon import SalonSpa
from salon_api.models.user import User
from salon_api.services import appointment_service

SLOT_DATE = date(2024, 6, 1)
TODAY = date(2024, 5, 30)


def test_concurrent_bookings_respect_slot_capacity(tmp_path, monkeypatch) -> None:
    engine = create_engine(
        f'sqlite:///{tmp_path / "bookings.db"}',
        connect_args={'check_same_thread': False, 'timeout': 30},
    )
    enable_sqlite_write_locks(engine)
    Base.metadata.create_all(bind=engine)
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    setup = session_factory()
    owner = User(name='Owner', email='owner@example.com', hashed_password='x', role='admin')
    customers = [
        User(name=f'Guest {index}', email=f'guest{index}@example.com', hashed_password='x', role='user')
        for index in range(2)
    ]
    setup.add_all([owner, *customers])
    setup.commit()
    salon = SalonSpa(
        owner_id=owner.id, name='Lotus Spa', description='Massage', address='1 Main St',
        city='Springfield', state='IL', zip='62701', working_days=['saturday'],
        start_time=time(9, 0), end_time=time(11, 0), slot_duration=30, max_bookings_per_slot=1,
    )
    setup.add(salon)
    setup.commit()
    salon_id = salon.id
    customer_ids = [customer.id for customer in customers]
    setup.close()

    original_count = appointment_service.count_slot_bookings

    def slow_count(*args, **kwargs):
        count = original_count(*args, **kwargs)
        time_module.sleep(0.3)
        return count

    monkeypatch.setattr(appointment_service, 'count_slot_bookings', slow_count)

    start = threading.Barrier(2)
    results = []

    def book(customer_id: int) -> None:
        session = session_factory()
        try:
            start.wait()
            result = appointment_service.book_appointment(
                session, customer_id, salon_id, SLOT_DATE, '9:00 AM', today=TODAY,
            )
            results.append((result.success, result.reason))
        finally:
            session.close()

    threads = [threading.Thread(target=book, args=(customer_id,)) for customer_id in customer_ids]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    check = session_factory()
    try:
        booked_rows = check.query(Appointment).count()
    finally:
        check.close()
        engine.dispose()

    assert sorted(results) == [(False, 'capacity'), (True, None)]
    assert booked_rows == 1
