from datetime import date

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from salon_api.core import config
from salon_api.models.appointment import Appointment
from salon_api.services import appointment_service
from salon_api.services.appointment_service import (
    book_appointment,
    can_transition,
    check_availability,
    check_salon_availability,
    dashboard_stats,
    list_appointments_for_customer,
    list_appointments_for_owner,
    set_appointment_status,
)

SLOT_DATE = date(2024, 6, 1)
TODAY = date(2024, 5, 30)


def _add_appointment(db, customer, salon, slot_date=SLOT_DATE, slot_time='9:00 AM', status='booked'):
    appointment = Appointment(
        user_id=customer.id,
        salon_spa_id=salon.id,
        owner_id=salon.owner_id,
        date=slot_date,
        time=slot_time,
        status=status,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


def test_check_availability_reports_full_capacity_for_empty_slot(db, admin, make_salon) -> None:
    salon = make_salon(admin, max_bookings_per_slot=2)

    result = check_availability(db, salon.id, SLOT_DATE, '9:00 AM', salon.max_bookings_per_slot)

    assert result.success is True
    assert result.data == {'remaining_slots': 2}


def test_check_availability_is_idempotent(db, admin, customer, make_salon) -> None:
    salon = make_salon(admin, max_bookings_per_slot=3)
    _add_appointment(db, customer, salon)

    first = check_salon_availability(db, salon.id, SLOT_DATE, '9:00 AM')
    second = check_salon_availability(db, salon.id, SLOT_DATE, '9:00 AM')

    assert first.data == second.data == {'remaining_slots': 2}


def test_check_availability_fails_when_slot_is_full(db, admin, customer, make_salon) -> None:
    salon = make_salon(admin, max_bookings_per_slot=2)
    for _ in range(2):
        assert book_appointment(db, customer.id, salon.id, SLOT_DATE, '9:00 AM', today=TODAY).success

    result = check_salon_availability(db, salon.id, SLOT_DATE, '9:00 AM')

    assert result.success is False
    assert result.message == 'No available slots'
    assert result.reason == 'capacity'
    assert result.data == {'remaining_slots': 0}


def test_check_availability_buckets_are_per_time_label(db, admin, customer, make_salon) -> None:
    salon = make_salon(admin, max_bookings_per_slot=1)
    _add_appointment(db, customer, salon, slot_time='9:00 AM')

    assert check_salon_availability(db, salon.id, SLOT_DATE, '9:30 AM').data == {'remaining_slots': 1}
    assert check_salon_availability(db, salon.id, date(2024, 6, 2), '9:00 AM').success is True


def test_check_salon_availability_unknown_salon(db) -> None:
    result = check_salon_availability(db, 404, SLOT_DATE, '9:00 AM')

    assert result.success is False
    assert result.reason == 'not_found'


def test_canceled_appointments_still_occupy_the_slot(db, admin, customer, make_salon) -> None:
    salon = make_salon(admin, max_bookings_per_slot=1)
    _add_appointment(db, customer, salon, status='canceled')

    assert check_salon_availability(db, salon.id, SLOT_DATE, '9:00 AM').success is False


def test_only_booked_rows_count_when_configured(db, admin, customer, make_salon, monkeypatch) -> None:
    monkeypatch.setattr(config, 'COUNT_ALL_STATUSES_TOWARD_CAPACITY', False)
    salon = make_salon(admin, max_bookings_per_slot=1)
    _add_appointment(db, customer, salon, status='canceled')

    result = check_salon_availability(db, salon.id, SLOT_DATE, '9:00 AM')

    assert result.success is True
    assert result.data == {'remaining_slots': 1}


def test_book_appointment_persists_booked_row(db, admin, customer, make_salon) -> None:
    salon = make_salon(admin)

    result = book_appointment(db, customer.id, salon.id, SLOT_DATE, '9:00 AM', today=TODAY)

    assert result.success is True
    appointment = result.data
    assert appointment.id is not None
    assert appointment.created_at is not None
    assert appointment.status == 'booked'
    assert appointment.user_id == customer.id
    assert appointment.owner_id == admin.id
    assert appointment.date == SLOT_DATE
    assert appointment.time == '9:00 AM'


def test_book_appointment_refuses_when_no_capacity_remains(db, admin, customer, make_salon) -> None:
    salon = make_salon(admin, max_bookings_per_slot=1)
    assert book_appointment(db, customer.id, salon.id, SLOT_DATE, '10:30 AM', today=TODAY).success

    result = book_appointment(db, customer.id, salon.id, SLOT_DATE, '10:30 AM', today=TODAY)

    assert result.success is False
    assert result.message == 'No available slots'
    assert db.query(Appointment).count() == 1


@pytest.mark.parametrize(
    ('slot_date', 'slot_time', 'working_days', 'message'),
    [
        (date(2024, 5, 1), '9:00 AM', None, 'Appointments cannot be booked in the past.'),
        (SLOT_DATE, '9:00 AM', ['monday'], 'The salon is closed on the selected date.'),
        (SLOT_DATE, '9:15 AM', None, 'The selected time is not a bookable slot for this salon.'),
        (SLOT_DATE, '11:00 AM', None, 'The selected time is not a bookable slot for this salon.'),
    ],
)
def test_book_appointment_rejects_invalid_slots(
    db, admin, customer, make_salon, slot_date, slot_time, working_days, message,
) -> None:
    overrides = {'working_days': working_days} if working_days else {}
    salon = make_salon(admin, **overrides)

    result = book_appointment(db, customer.id, salon.id, slot_date, slot_time, today=TODAY)

    assert result.success is False
    assert result.reason == 'invalid'
    assert result.message == message


def test_book_appointment_unknown_salon(db, customer) -> None:
    result = book_appointment(db, customer.id, 999, SLOT_DATE, '9:00 AM', today=TODAY)

    assert result.success is False
    assert result.reason == 'not_found'


def test_book_appointment_reports_persistence_errors(db, admin, customer, make_salon, monkeypatch) -> None:
    salon = make_salon(admin)

    def failing_commit():
        raise SQLAlchemyError('database is read-only')

    monkeypatch.setattr(db, 'commit', failing_commit)

    result = book_appointment(db, customer.id, salon.id, SLOT_DATE, '9:00 AM', today=TODAY)

    assert result.success is False
    assert result.reason == 'persistence'
    assert result.message == 'database is read-only'


@pytest.mark.parametrize(
    ('current', 'target', 'appointment_date', 'expected'),
    [
        ('booked', 'completed', SLOT_DATE, True),
        ('booked', 'canceled', SLOT_DATE, True),
        ('booked', 'canceled', TODAY, True),
        ('booked', 'booked', SLOT_DATE, False),
        ('completed', 'booked', SLOT_DATE, False),
        ('completed', 'canceled', SLOT_DATE, False),
        ('canceled', 'completed', SLOT_DATE, False),
        ('canceled', 'booked', SLOT_DATE, False),
        ('booked', 'completed', date(2024, 5, 29), False),
    ],
)
def test_can_transition(current, target, appointment_date, expected) -> None:
    assert can_transition(current, target, appointment_date, TODAY) is expected


def test_set_appointment_status_completes_then_locks(db, admin, customer, make_salon) -> None:
    salon = make_salon(admin)
    appointment = book_appointment(db, customer.id, salon.id, SLOT_DATE, '9:00 AM', today=TODAY).data

    completed = set_appointment_status(db, appointment.id, 'completed', today=TODAY)
    assert completed.success is True
    assert db.get(Appointment, appointment.id).status == 'completed'

    reverted = set_appointment_status(db, appointment.id, 'booked', today=TODAY)
    assert reverted.success is False
    assert reverted.reason == 'invalid'
    assert reverted.message == 'A completed appointment cannot be changed.'
    assert db.get(Appointment, appointment.id).status == 'completed'


def test_set_appointment_status_rejects_changes_to_canceled(db, admin, customer, make_salon) -> None:
    salon = make_salon(admin)
    appointment = _add_appointment(db, customer, salon, status='canceled')

    result = set_appointment_status(db, appointment.id, 'completed', today=TODAY)

    assert result.success is False
    assert result.message == 'A canceled appointment cannot be changed.'


def test_set_appointment_status_rejects_past_appointments(db, admin, customer, make_salon) -> None:
    salon = make_salon(admin)
    appointment = _add_appointment(db, customer, salon, slot_date=date(2024, 5, 1))

    result = set_appointment_status(db, appointment.id, 'canceled', today=TODAY)

    assert result.success is False
    assert result.message == 'Past appointments cannot be changed.'


def test_set_appointment_status_validates_input(db) -> None:
    assert set_appointment_status(db, 1, 'archived', today=TODAY).reason == 'invalid'
    assert set_appointment_status(db, 1, 'canceled', today=TODAY).reason == 'not_found'


def test_list_appointments_for_customer_newest_first(db, admin, customer, make_user, make_salon) -> None:
    other = make_user(email='other@example.com')
    salon = make_salon(admin)
    first = _add_appointment(db, customer, salon, slot_time='9:00 AM')
    second = _add_appointment(db, customer, salon, slot_time='9:30 AM')
    _add_appointment(db, other, salon, slot_time='10:00 AM')

    result = list_appointments_for_customer(db, customer.id)

    assert result.success is True
    assert [appointment.id for appointment in result.data] == [second.id, first.id]
    assert result.data[0].salon_spa.name == 'Lotus Spa'


def test_list_appointments_for_owner_applies_filters(db, admin, customer, make_user, make_salon) -> None:
    other_admin = make_user(email='rival@example.com', role='admin')
    salon = make_salon(admin)
    second_salon = make_salon(admin, name='Jade Salon')
    rival_salon = make_salon(other_admin)

    booked = _add_appointment(db, customer, salon)
    canceled = _add_appointment(db, customer, salon, status='canceled', slot_date=date(2024, 6, 2))
    elsewhere = _add_appointment(db, customer, second_salon)
    _add_appointment(db, customer, rival_salon)

    everything = list_appointments_for_owner(db, admin.id).data
    assert {appointment.id for appointment in everything} == {booked.id, canceled.id, elsewhere.id}

    by_status = list_appointments_for_owner(db, admin.id, status='canceled').data
    assert [appointment.id for appointment in by_status] == [canceled.id]

    by_date = list_appointments_for_owner(db, admin.id, slot_date=SLOT_DATE).data
    assert {appointment.id for appointment in by_date} == {booked.id, elsewhere.id}

    by_salon = list_appointments_for_owner(db, admin.id, salon_id=second_salon.id).data
    assert [appointment.id for appointment in by_salon] == [elsewhere.id]
    assert by_salon[0].customer.name == 'Customer'


def test_dashboard_stats_counts_by_status(db, admin, customer, make_user, make_salon) -> None:
    other = make_user(email='other@example.com')
    salon = make_salon(admin)
    today = date(2024, 6, 1)
    _add_appointment(db, customer, salon, slot_date=date(2024, 6, 5))
    _add_appointment(db, customer, salon, slot_date=date(2024, 5, 1))
    _add_appointment(db, customer, salon, status='completed')
    _add_appointment(db, other, salon, status='canceled')

    overall = dashboard_stats(db, today=today).data
    assert overall == {
        'total_bookings': 4,
        'canceled_bookings': 1,
        'completed_bookings': 1,
        'upcoming_bookings': 1,
    }
    booked_count = overall['total_bookings'] - overall['canceled_bookings'] - overall['completed_bookings']
    assert booked_count == 2

    mine = dashboard_stats(db, customer_id=customer.id, today=today).data
    assert mine == {
        'total_bookings': 3,
        'canceled_bookings': 0,
        'completed_bookings': 1,
        'upcoming_bookings': 1,
    }


def test_dashboard_counts_today_as_upcoming(db, admin, customer, make_salon) -> None:
    salon = make_salon(admin)
    _add_appointment(db, customer, salon, slot_date=SLOT_DATE)

    assert dashboard_stats(db, today=SLOT_DATE).data['upcoming_bookings'] == 1
    assert appointment_service.dashboard_stats(db, today=date(2024, 6, 2)).data['upcoming_bookings'] == 0


def test_check_availability_clamps_when_slot_is_overbooked(db, admin, customer, make_salon) -> None:
    salon = make_salon(admin, max_bookings_per_slot=2)
    for _ in range(3):
        _add_appointment(db, customer, salon)

    result = check_availability(db, salon.id, SLOT_DATE, '9:00 AM', 2)

    assert result.success is False
    assert result.reason == 'capacity'
    assert result.data == {'remaining_slots': 0}


def test_appointment_slot_indexes_are_created(db) -> None:
    index_names = {index['name'] for index in inspect(db.get_bind()).get_indexes('appointments')}

    assert {'idx_appointments_slot', 'idx_appointments_owner_created'} <= index_names
