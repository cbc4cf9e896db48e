from datetime import date, timedelta

import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import DatabaseError, IntegrityError, transaction
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from care.exceptions import InvalidTransition, SlotUnavailable
from care.models import Activity, Appointment, Patient, Report, User
from care.services.audit import ActivityEmitter, list_activities
from care.services.lifecycle import LifecycleEngine
from care.services.notifications import Notifier, hospital_group
from care.services.reports import create_report
from care.services.stores import AppointmentStore, PatientStore

pytestmark = pytest.mark.django_db


def book(engine, doctor, email='a@x.com', day='2024-06-01', time='09:00', name='Ada Lovelace', **kwargs):
    return engine.book_appointment(
        doctor_id=doctor.pk, hospital_id=doctor.hospital_id, date=day, time=time,
        patient_details={'name': name, 'email': email}, **kwargs,
    )


def actions(subject_id=None):
    qs = Activity.objects.order_by('id')
    if subject_id is not None:
        qs = qs.filter(subject='appointment', subject_id=str(subject_id))
    return list(qs.values_list('action', flat=True))


# ---------------------------------------------------------------------
# Booking and the slot guard
# ---------------------------------------------------------------------
def test_booking_creates_pending_appointment_and_active_patient(engine, doctor):
    result = book(engine, doctor)

    appt = Appointment.objects.get(pk=result.appointment.pk)
    assert appt.status == Appointment.STATUS_PENDING
    assert appt.date == date(2024, 6, 1)
    assert appt.time == '09:00'
    patient = Patient.objects.get(email='a@x.com')
    assert patient.status == Patient.STATUS_ACTIVE
    assert patient.primary_doctor_id == doctor.pk
    assert patient.hospital_id == doctor.hospital_id
    assert result.warnings == []
    assert actions(appt.pk) == ['appointment_created']


def test_second_booking_of_occupied_slot_is_rejected(engine, doctor):
    book(engine, doctor)
    with pytest.raises(SlotUnavailable):
        book(engine, doctor, email='b@x.com', name='Bob Builder')
    assert Appointment.objects.filter(doctor=doctor, date=date(2024, 6, 1), time='09:00').count() == 1
    assert not Patient.objects.filter(email='b@x.com').exists()


def test_cancelled_slot_can_be_booked_again(engine, doctor, staff_user):
    first = book(engine, doctor)
    engine.update_status(first.appointment.pk, 'cancelled', staff_user)

    second = book(engine, doctor, email='b@x.com', name='Bob Builder')

    assert second.appointment.status == Appointment.STATUS_PENDING
    live = Appointment.objects.filter(doctor=doctor, date=date(2024, 6, 1), time='09:00').exclude(status='cancelled')
    assert live.count() == 1


def test_booking_matches_patient_email_case_insensitively(engine, doctor):
    first = book(engine, doctor)
    second = book(engine, doctor, email='  A@X.COM ', time='09:30')
    assert second.patient.pk == first.patient.pk
    assert Patient.objects.count() == 1


def test_booking_requires_patient_contact_details(engine, doctor):
    with pytest.raises(ValidationError):
        book(engine, doctor, email='')
    assert Appointment.objects.count() == 0


def test_booking_rejects_unavailable_doctor(engine, doctor):
    doctor.is_available = False
    doctor.save()
    with pytest.raises(ValidationError):
        book(engine, doctor)


def test_booking_rejects_doctor_from_another_hospital(engine, doctor, other_hospital):
    with pytest.raises(ValidationError):
        engine.book_appointment(
            doctor_id=doctor.pk, hospital_id=other_hospital.pk, date='2024-06-01', time='09:00',
            patient_details={'name': 'Ada Lovelace', 'email': 'a@x.com'},
        )


def test_booking_unknown_doctor_is_not_found(engine, hospital):
    with pytest.raises(NotFound):
        engine.book_appointment(
            doctor_id=424242, hospital_id=hospital.pk, date='2024-06-01', time='09:00',
            patient_details={'name': 'Ada Lovelace', 'email': 'a@x.com'},
        )


def test_booking_rejects_malformed_time(engine, doctor):
    with pytest.raises(ValidationError):
        book(engine, doctor, time='9 o clock')


def test_booking_inactive_patient_reactivates_them(engine, doctor, inactive_patient, clock):
    result = book(engine, doctor, email='ADA@example.com')

    inactive_patient.refresh_from_db()
    assert result.appointment.patient_id == inactive_patient.pk
    assert inactive_patient.status == Patient.STATUS_ACTIVE
    assert inactive_patient.last_status_change_date == clock()
    assert inactive_patient.treatment_days == 12
    assert result.patient_status_changed is True
    assert 'update_patient_status' in actions()


def test_booking_sends_confirmation_email(engine, doctor, mailoutbox):
    book(engine, doctor)
    assert len(mailoutbox) == 1
    assert mailoutbox[0].to == ['a@x.com']
    assert '2024-06-01' in mailoutbox[0].subject


def test_booking_survives_mail_failure(engine, doctor, monkeypatch):
    def boom(*args, **kwargs):
        raise ConnectionRefusedError('smtp down')
    monkeypatch.setattr('care.services.notifications.send_mail', boom)

    result = book(engine, doctor)

    assert Appointment.objects.filter(pk=result.appointment.pk).exists()
    assert result.warnings == []


def test_console_creation_can_confirm_immediately(engine, doctor, staff_user, inactive_patient):
    result = engine.create_appointment(
        actor=staff_user, doctor_id=doctor.pk, date='2024-06-02', time='10:00',
        patient_id=inactive_patient.pk, confirm=True,
    )
    inactive_patient.refresh_from_db()
    assert result.appointment.status == Appointment.STATUS_CONFIRMED
    assert inactive_patient.status == Patient.STATUS_ACTIVE


def test_console_creation_is_limited_to_staff(engine, doctor):
    with pytest.raises(PermissionDenied):
        engine.create_appointment(
            actor=doctor.user, doctor_id=doctor.pk, date='2024-06-02', time='10:00',
            patient_details={'name': 'Ada Lovelace', 'email': 'a@x.com'},
        )


def test_console_creation_respects_slot_guard(engine, doctor, staff_user):
    book(engine, doctor, day='2024-06-02', time='10:00')
    with pytest.raises(SlotUnavailable):
        engine.create_appointment(
            actor=staff_user, doctor_id=doctor.pk, date='2024-06-02', time='10:00',
            patient_details={'name': 'Bob Builder', 'email': 'b@x.com'},
        )


def test_available_slots_skip_live_appointments(engine, doctor, staff_user):
    book(engine, doctor, time='09:00')
    cancelled = book(engine, doctor, email='b@x.com', time='09:30')
    engine.update_status(cancelled.appointment.pk, 'cancelled', staff_user)

    slots = engine.available_slots(doctor.pk, '2024-06-01')

    assert '09:00' not in slots
    assert '09:30' in slots
    assert slots[0] == '09:30'


# ---------------------------------------------------------------------
# Explicit status updates
# ---------------------------------------------------------------------
def test_confirming_keeps_active_patient_timestamp(engine, doctor, staff_user, clock):
    booked = book(engine, doctor)
    created_at = Patient.objects.get(pk=booked.patient.pk).last_status_change_date
    clock.advance(hours=5)

    result = engine.update_status(booked.appointment.pk, 'confirmed', staff_user)

    patient = Patient.objects.get(pk=booked.patient.pk)
    assert result.appointment.status == Appointment.STATUS_CONFIRMED
    assert patient.status == Patient.STATUS_ACTIVE
    assert patient.last_status_change_date == created_at
    assert result.patient_status_changed is False
    assert 'update_patient_status' not in actions()
    assert actions(booked.appointment.pk)[-1] == 'appointment_confirmed'


def test_confirming_reactivates_inactive_patient(engine, doctor, staff_user, inactive_patient, clock):
    appt = Appointment.objects.create(patient=inactive_patient, doctor=doctor, hospital=doctor.hospital,
                                      date=date(2024, 6, 1), time='11:00')
    result = engine.update_status(appt.pk, 'confirmed', staff_user)
    inactive_patient.refresh_from_db()
    assert inactive_patient.status == Patient.STATUS_ACTIVE
    assert inactive_patient.last_status_change_date == clock()
    assert result.patient_status_changed is True


def test_not_appeared_stores_reason(engine, doctor, staff_user):
    booked = book(engine, doctor)
    engine.update_status(booked.appointment.pk, 'not_appeared', staff_user, no_show_reason='Called in sick')
    appt = Appointment.objects.get(pk=booked.appointment.pk)
    assert appt.status == Appointment.STATUS_NOT_APPEARED
    assert appt.no_show_reason == 'Called in sick'
    assert Activity.objects.get(action='appointment_not_appeared').metadata['noShowReason'] == 'Called in sick'


def test_repeated_status_is_a_noop(engine, doctor, staff_user):
    booked = book(engine, doctor)
    engine.update_status(booked.appointment.pk, 'confirmed', staff_user)
    before = Activity.objects.count()

    result = engine.update_status(booked.appointment.pk, 'confirmed', staff_user)

    assert result.appointment.status == Appointment.STATUS_CONFIRMED
    assert Activity.objects.count() == before


def test_terminal_status_cannot_be_left(engine, doctor, staff_user):
    booked = book(engine, doctor)
    engine.update_status(booked.appointment.pk, 'cancelled', staff_user)
    with pytest.raises(InvalidTransition):
        engine.update_status(booked.appointment.pk, 'confirmed', staff_user)
    assert Appointment.objects.get(pk=booked.appointment.pk).status == Appointment.STATUS_CANCELLED


def test_unknown_status_is_rejected(engine, doctor, staff_user):
    booked = book(engine, doctor)
    with pytest.raises(ValidationError):
        engine.update_status(booked.appointment.pk, 'teleported', staff_user)


def test_completion_backfills_visit_times(engine, doctor, staff_user, clock):
    booked = book(engine, doctor)
    engine.update_status(booked.appointment.pk, 'confirmed', staff_user)
    clock.advance(minutes=45)

    engine.update_status(booked.appointment.pk, 'completed', staff_user)

    appt = Appointment.objects.get(pk=booked.appointment.pk)
    assert appt.check_in_time == clock()
    assert appt.consultation_start_time == clock()


def test_doctor_cannot_touch_other_doctors_appointment(engine, doctor, other_doctor):
    booked = book(engine, doctor)
    with pytest.raises(PermissionDenied):
        engine.update_status(booked.appointment.pk, 'confirmed', other_doctor.user)


def test_staff_of_other_hospital_is_denied(engine, doctor, other_hospital):
    outsider = User.objects.create_user(username='outsider', password='x', role='staff', hospital=other_hospital)
    booked = book(engine, doctor)
    with pytest.raises(PermissionDenied):
        engine.update_status(booked.appointment.pk, 'cancelled', outsider)


def test_patient_may_cancel_only_their_own_appointment(engine, doctor):
    booked = book(engine, doctor)
    account = User.objects.create_user(username='ada', password='x', role='patient')
    Patient.objects.filter(pk=booked.patient.pk).update(user=account)
    account.refresh_from_db()

    with pytest.raises(PermissionDenied):
        engine.update_status(booked.appointment.pk, 'confirmed', account)
    result = engine.update_status(booked.appointment.pk, 'cancelled', account)
    assert result.appointment.status == Appointment.STATUS_CANCELLED


def test_missing_appointment_is_not_found(engine, staff_user):
    with pytest.raises(NotFound):
        engine.update_status(999999, 'confirmed', staff_user)


# ---------------------------------------------------------------------
# Check-in
# ---------------------------------------------------------------------
def test_check_in_confirms_pending_appointment(engine, doctor, staff_user, clock):
    booked = book(engine, doctor)
    clock.advance(minutes=10)

    result = engine.check_in(booked.appointment.pk, staff_user)

    appt = Appointment.objects.get(pk=booked.appointment.pk)
    assert appt.status == Appointment.STATUS_CONFIRMED
    assert appt.check_in_time == clock()
    assert result.warnings == []
    assert actions(appt.pk)[-1] == 'patient_checked_in'


def test_check_in_uses_supplied_time(engine, doctor, staff_user, clock):
    booked = book(engine, doctor)
    at = clock() + timedelta(minutes=3)
    engine.check_in(booked.appointment.pk, staff_user, check_in_time=at)
    assert Appointment.objects.get(pk=booked.appointment.pk).check_in_time == at


def test_check_in_rejects_closed_appointment(engine, doctor, staff_user):
    booked = book(engine, doctor)
    engine.update_status(booked.appointment.pk, 'cancelled', staff_user)
    with pytest.raises(InvalidTransition):
        engine.check_in(booked.appointment.pk, staff_user)


# ---------------------------------------------------------------------
# Treatment outcomes and the patient status rules
# ---------------------------------------------------------------------
def test_successful_outcome_deactivates_and_accrues_days(engine, doctor, clock):
    booked = book(engine, doctor)
    patient = Patient.objects.get(pk=booked.patient.pk)
    patient.treatment_days = 4
    patient.save()
    clock.advance(days=3)

    result = engine.record_treatment_outcome(booked.appointment.pk, doctor.user, treatment_outcome='successful')

    patient.refresh_from_db()
    assert result.appointment.status == Appointment.STATUS_COMPLETED
    assert patient.status == Patient.STATUS_INACTIVE
    assert patient.treatment_days == 7
    assert patient.last_status_change_date == clock()
    assert 'update_treatment' in actions(booked.appointment.pk)
    assert Activity.objects.filter(action='update_patient_status', subject='patient').count() == 1


def test_partial_days_round_down(engine, doctor, clock):
    booked = book(engine, doctor)
    clock.advance(days=2, hours=23)
    engine.record_treatment_outcome(booked.appointment.pk, doctor.user, treatment_outcome='unsuccessful')
    assert Patient.objects.get(pk=booked.patient.pk).treatment_days == 2


@pytest.mark.parametrize('start_status', ['pending', 'confirmed'])
def test_concluded_outcome_forces_completion(engine, doctor, staff_user, start_status):
    booked = book(engine, doctor)
    if start_status == 'confirmed':
        engine.update_status(booked.appointment.pk, 'confirmed', staff_user)

    engine.record_treatment_outcome(booked.appointment.pk, staff_user, treatment_outcome='partial')

    assert Appointment.objects.get(pk=booked.appointment.pk).status == Appointment.STATUS_COMPLETED


def test_partial_outcome_never_changes_patient_status(engine, doctor, staff_user, inactive_patient):
    booked = book(engine, doctor)
    other = Appointment.objects.create(patient=inactive_patient, doctor=doctor, hospital=doctor.hospital,
                                       date=date(2024, 6, 3), time='14:00', status='confirmed')
    Patient.objects.filter(pk=inactive_patient.pk).update(status=Patient.STATUS_INACTIVE)

    engine.record_treatment_outcome(booked.appointment.pk, staff_user, treatment_outcome='partial')
    engine.record_treatment_outcome(other.pk, staff_user, treatment_outcome='partial')

    assert Patient.objects.get(pk=booked.patient.pk).status == Patient.STATUS_ACTIVE
    assert Patient.objects.get(pk=inactive_patient.pk).status == Patient.STATUS_INACTIVE


def test_ongoing_outcome_reactivates_without_completing(engine, doctor, staff_user, inactive_patient, clock):
    appt = Appointment.objects.create(patient=inactive_patient, doctor=doctor, hospital=doctor.hospital,
                                      date=date(2024, 6, 1), time='15:00', status='confirmed')

    result = engine.record_treatment_outcome(appt.pk, staff_user, treatment_outcome='ongoing', disease='Asthma')

    inactive_patient.refresh_from_db()
    assert result.appointment.status == Appointment.STATUS_CONFIRMED
    assert result.appointment.disease == 'Asthma'
    assert inactive_patient.status == Patient.STATUS_ACTIVE
    assert inactive_patient.last_status_change_date == clock()


def test_outcome_update_keeps_omitted_fields(engine, doctor, staff_user):
    booked = book(engine, doctor)
    engine.record_treatment_outcome(booked.appointment.pk, staff_user, diagnosis='Flu', disease='Influenza')
    engine.record_treatment_outcome(booked.appointment.pk, staff_user, treatment_end_date='2024-06-10')
    appt = Appointment.objects.get(pk=booked.appointment.pk)
    assert appt.diagnosis == 'Flu'
    assert appt.disease == 'Influenza'
    assert appt.treatment_end_date == date(2024, 6, 10)
    assert appt.treatment_outcome == Appointment.OUTCOME_ONGOING
    assert appt.status == Appointment.STATUS_PENDING


def test_invalid_outcome_is_rejected(engine, doctor):
    booked = book(engine, doctor)
    with pytest.raises(ValidationError):
        engine.record_treatment_outcome(booked.appointment.pk, doctor.user, treatment_outcome='cured')
    assert Appointment.objects.get(pk=booked.appointment.pk).status == Appointment.STATUS_PENDING


def test_only_owning_doctor_records_outcome(engine, doctor, other_doctor):
    booked = book(engine, doctor)
    with pytest.raises(PermissionDenied):
        engine.record_treatment_outcome(booked.appointment.pk, other_doctor.user, treatment_outcome='successful')


# ---------------------------------------------------------------------
# Side-effect isolation
# ---------------------------------------------------------------------
class BrokenPatientStore(PatientStore):
    def save(self, patient, fields):
        raise DatabaseError('patient table is read-only')


def test_patient_store_failure_keeps_status_update(doctor, staff_user, inactive_patient, clock):
    engine = LifecycleEngine(AppointmentStore(), BrokenPatientStore(), ActivityEmitter(), Notifier(), clock=clock)
    appt = Appointment.objects.create(patient=inactive_patient, doctor=doctor, hospital=doctor.hospital,
                                      date=date(2024, 6, 1), time='09:00')

    result = engine.update_status(appt.pk, 'confirmed', staff_user)

    assert result.appointment.status == Appointment.STATUS_CONFIRMED
    assert Appointment.objects.get(pk=appt.pk).status == Appointment.STATUS_CONFIRMED
    assert result.warnings == ['Patient status could not be updated.']
    assert Patient.objects.get(pk=inactive_patient.pk).status == Patient.STATUS_INACTIVE
    assert actions(appt.pk) == ['appointment_confirmed']


def test_missing_patient_is_reported_as_warning(engine, doctor, staff_user, inactive_patient, monkeypatch):
    appt = Appointment.objects.create(patient=inactive_patient, doctor=doctor, hospital=doctor.hospital,
                                      date=date(2024, 6, 1), time='09:00', status='confirmed')
    monkeypatch.setattr(engine.synchronizer.patients, 'get', lambda *a, **kw: None)

    result = engine.record_treatment_outcome(appt.pk, staff_user, treatment_outcome='successful')

    assert Appointment.objects.get(pk=appt.pk).status == Appointment.STATUS_COMPLETED
    assert len(result.warnings) == 1
    assert 'not found' in result.warnings[0]
    assert 'update_treatment' in actions(appt.pk)


def test_audit_failure_is_reported_not_raised(engine, doctor, staff_user, monkeypatch):
    booked = book(engine, doctor)

    def boom(**kwargs):
        raise DatabaseError('audit sink offline')
    monkeypatch.setattr(Activity.objects, 'create', boom)

    result = engine.update_status(booked.appointment.pk, 'confirmed', staff_user)

    assert result.appointment.status == Appointment.STATUS_CONFIRMED
    assert Appointment.objects.get(pk=booked.appointment.pk).status == Appointment.STATUS_CONFIRMED
    assert any('could not be written' in w for w in result.warnings)


# ---------------------------------------------------------------------
# Reports and follow-ups
# ---------------------------------------------------------------------
def test_report_completes_appointment_and_schedules_follow_up(engine, doctor):
    booked = book(engine, doctor)

    report, result = create_report(
        doctor.user, appointment_id=booked.appointment.pk, type='diagnosis',
        diagnosis='<b>Seasonal flu</b>', follow_up_date=date(2024, 6, 15), engine=engine,
    )

    report.refresh_from_db()
    assert report.report_number.startswith('RPT-')
    assert report.diagnosis == 'Seasonal flu'
    assert result.appointment.status == Appointment.STATUS_COMPLETED
    follow_up = result.follow_up
    assert follow_up.is_follow_up is True
    assert follow_up.needs_time_slot is True
    assert follow_up.status == Appointment.STATUS_PENDING
    assert follow_up.date == date(2024, 6, 15)
    assert follow_up.original_appointment_id == booked.appointment.pk
    assert follow_up.related_report_id == report.pk
    assert report.follow_up_appointment_id == follow_up.pk
    logged = actions()
    assert 'report_generated' in logged
    assert 'appointment_completed' in logged
    assert 'followup_scheduled' in logged


def test_report_on_completed_appointment_logs_no_second_completion(engine, doctor, staff_user):
    booked = book(engine, doctor)
    engine.update_status(booked.appointment.pk, 'completed', staff_user)

    create_report(staff_user, appointment_id=booked.appointment.pk, engine=engine)

    assert actions(booked.appointment.pk).count('appointment_completed') == 1


def test_follow_up_reactivates_discharged_patient(engine, doctor, clock):
    booked = book(engine, doctor)
    clock.advance(days=2)
    engine.record_treatment_outcome(booked.appointment.pk, doctor.user, treatment_outcome='successful')
    assert Patient.objects.get(pk=booked.patient.pk).status == Patient.STATUS_INACTIVE
    clock.advance(hours=1)

    _, result = create_report(doctor.user, appointment_id=booked.appointment.pk,
                              follow_up_date='2024-06-20', engine=engine)

    patient = Patient.objects.get(pk=booked.patient.pk)
    assert patient.status == Patient.STATUS_ACTIVE
    assert patient.last_status_change_date == clock()
    assert patient.treatment_days == 2
    assert result.patient_status_changed is True


def test_report_by_foreign_doctor_is_denied(engine, doctor, other_doctor):
    booked = book(engine, doctor)
    with pytest.raises(PermissionDenied):
        create_report(other_doctor.user, appointment_id=booked.appointment.pk, engine=engine)
    assert Report.objects.count() == 0


def test_unscheduled_follow_ups_do_not_block_each_other(engine, doctor):
    first = book(engine, doctor, time='09:00')
    second = book(engine, doctor, email='b@x.com', name='Bob Builder', time='09:30')

    _, r1 = create_report(doctor.user, appointment_id=first.appointment.pk, follow_up_date='2024-06-15', engine=engine)
    _, r2 = create_report(doctor.user, appointment_id=second.appointment.pk, follow_up_date='2024-06-15', engine=engine)

    assert r1.follow_up is not None
    assert r2.follow_up is not None
    assert r1.warnings == []
    assert r2.warnings == []
    assert engine.available_slots(doctor.pk, '2024-06-15')[0] == '09:00'


def test_follow_up_slot_assignment_respects_slot_guard(engine, doctor, staff_user):
    first = book(engine, doctor, time='09:00')
    second = book(engine, doctor, email='b@x.com', name='Bob Builder', time='09:30')
    _, r1 = create_report(doctor.user, appointment_id=first.appointment.pk, follow_up_date='2024-06-15', engine=engine)
    _, r2 = create_report(doctor.user, appointment_id=second.appointment.pk, follow_up_date='2024-06-15', engine=engine)

    result = engine.update_follow_up(r1.follow_up.pk, staff_user, time='10:00', time_slot_confirmed=True)

    assert result.appointment.time == '10:00'
    assert result.appointment.needs_time_slot is False
    assert result.appointment.time_slot_confirmed is True
    assert actions(r1.follow_up.pk)[-1] == 'followup_updated'
    with pytest.raises(SlotUnavailable):
        engine.update_follow_up(r2.follow_up.pk, staff_user, time='10:00')
    assert Appointment.objects.get(pk=r2.follow_up.pk).needs_time_slot is True


def test_follow_up_update_rejects_regular_and_closed_appointments(engine, doctor, staff_user):
    booked = book(engine, doctor)
    with pytest.raises(ValidationError):
        engine.update_follow_up(booked.appointment.pk, staff_user, reminder_sent=True)

    _, result = create_report(doctor.user, appointment_id=booked.appointment.pk,
                              follow_up_date='2024-06-15', engine=engine)
    engine.update_status(result.follow_up.pk, 'cancelled', staff_user)
    with pytest.raises(InvalidTransition):
        engine.update_follow_up(result.follow_up.pk, staff_user, time='11:00')


# ---------------------------------------------------------------------
# Realtime broadcast
# ---------------------------------------------------------------------
def test_changes_are_broadcast_to_hospital_group(engine, doctor, staff_user):
    layer = get_channel_layer()
    channel = async_to_sync(layer.new_channel)()
    async_to_sync(layer.group_add)(hospital_group(doctor.hospital_id), channel)

    booked = book(engine, doctor)
    message = async_to_sync(layer.receive)(channel)

    assert message['type'] == 'appointment.changed'
    assert message['event'] == 'booked'
    assert message['appointmentId'] == booked.appointment.pk
    assert message['status'] == 'pending'

    engine.update_status(booked.appointment.pk, 'confirmed', staff_user)
    message = async_to_sync(layer.receive)(channel)
    assert message['event'] == 'status:confirmed'
    async_to_sync(layer.group_discard)(hospital_group(doctor.hospital_id), channel)


def test_repeated_confirm_reactivates_discharged_patient(engine, doctor, staff_user, inactive_patient, clock):
    appt = Appointment.objects.create(patient=inactive_patient, doctor=doctor, hospital=doctor.hospital,
                                      date=date(2024, 6, 1), time='11:00', status='confirmed')

    result = engine.update_status(appt.pk, 'confirmed', staff_user)

    inactive_patient.refresh_from_db()
    assert inactive_patient.status == Patient.STATUS_ACTIVE
    assert inactive_patient.last_status_change_date == clock()
    assert result.patient_status_changed is True
    assert actions(appt.pk) == []
    assert actions() == ['update_patient_status']


# ---------------------------------------------------------------------
# Patient records and the activity log read
# ---------------------------------------------------------------------
def test_patient_email_is_unique_case_insensitively(inactive_patient):
    with pytest.raises(IntegrityError):
        with transaction.atomic():
            Patient.objects.create(name='Ada Again', email='ADA@Example.com')


def test_concurrent_first_booking_reuses_patient_row(inactive_patient, monkeypatch):
    store = PatientStore()
    lookups = iter([None, inactive_patient])
    # the first lookup misses as if the other booking had not committed yet
    monkeypatch.setattr(store, 'find_by_email', lambda email: next(lookups))

    patient, created = store.get_or_create_by_email(' Ada@Example.com ', name='Ada Lovelace')

    assert created is False
    assert patient.pk == inactive_patient.pk
    assert Patient.objects.count() == 1


def test_activity_list_scoping(engine, doctor, other_doctor, staff_user, admin_user):
    book(engine, doctor)
    engine.book_appointment(
        doctor_id=other_doctor.pk, hospital_id=other_doctor.hospital_id, date='2024-06-01', time='09:00',
        patient_details={'name': 'Bob Builder', 'email': 'b@x.com'},
    )

    _, total = list_activities(admin_user)
    assert total == 2
    _, total = list_activities(admin_user, hospital_id=other_doctor.hospital_id)
    assert total == 1
    data, total = list_activities(staff_user, hospital_id=other_doctor.hospital_id)
    assert total == 1
    assert data[0]['hospitalId'] == doctor.hospital_id
