from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from django.core.cache import cache

from care.models import Doctor, Hospital, Patient, User
from care.services.audit import ActivityEmitter
from care.services.lifecycle import LifecycleEngine
from care.services.notifications import Notifier
from care.services.stores import AppointmentStore, PatientStore

PASSWORD = 'P@ssw0rd1'


class FakeClock:
    """Callable clock the engine reads "now" from; tests move it by hand."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def _clear_cache():
    # throttle counters live in the cache
    cache.clear()
    yield
    cache.clear()


def make_doctor(hospital, username, **kwargs):
    user = User.objects.create_user(
        username=username, password=PASSWORD, role='doctor', hospital=hospital,
        first_name='Gregory', last_name=username.title(), email=f'{username}@clinic.test',
    )
    return Doctor.objects.create(user=user, hospital=hospital, specialization='Cardiology', **kwargs)


@pytest.fixture
def hospital(db):
    return Hospital.objects.create(name='City Clinic', address='1 Main St')


@pytest.fixture
def other_hospital(db):
    return Hospital.objects.create(name='Harbour Hospital')


@pytest.fixture
def doctor(hospital):
    return make_doctor(hospital, 'house')


@pytest.fixture
def other_doctor(other_hospital):
    return make_doctor(other_hospital, 'wilson')


@pytest.fixture
def staff_user(hospital):
    return User.objects.create_user(username='frontdesk', password=PASSWORD, role='staff', hospital=hospital)


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(username='root', password=PASSWORD, role='admin')


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 20, 8, 0, tzinfo=dt_timezone.utc))


@pytest.fixture
def engine(clock):
    return LifecycleEngine(AppointmentStore(), PatientStore(), ActivityEmitter(), Notifier(), clock=clock)


@pytest.fixture
def inactive_patient(hospital, clock):
    return Patient.objects.create(
        name='Ada Lovelace', email='ada@example.com', hospital=hospital,
        status=Patient.STATUS_INACTIVE, last_status_change_date=clock() - timedelta(days=30),
        treatment_days=12,
    )
