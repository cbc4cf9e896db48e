"""
Appointment lifecycle engine.

Every status change of an appointment goes through :class:`LifecycleEngine`.
An operation validates the request, mutates the appointment inside its
own transaction, then runs the best-effort side effects in order:

1. patient status synchronization (:mod:`care.services.synchronizer`),
2. one activity entry per accepted transition (:mod:`care.services.audit`),
3. notifications (:mod:`care.services.notifications`).

Side effects never undo the appointment change.  Their failures come
back as strings on :attr:`LifecycleResult.warnings`.

Validation, authorization and lookup failures are raised as DRF
exceptions (``ValidationError``, ``PermissionDenied``, ``NotFound``) so
views can let them propagate to the project exception handler.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date as date_cls, datetime, timedelta
from typing import Callable, Dict, List, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from care.exceptions import InvalidTransition, SlotUnavailable
from care.models import Appointment, Doctor, Patient, Report, User
from care.services.audit import ActivityEmitter
from care.services.notifications import Notifier
from care.services.stores import AppointmentStore, PatientStore
from care.services.synchronizer import PatientStatusSynchronizer, SyncOutcome

logger = logging.getLogger(__name__)

STATUSES = {value for value, _ in Appointment.STATUS_CHOICES}
OUTCOMES = {value for value, _ in Appointment.OUTCOME_CHOICES}
FOLLOW_UP_PLACEHOLDER_TIME = '00:00'
PATIENT_DETAIL_FIELDS = ('phone', 'gender', 'age', 'date_of_birth', 'blood_group')


def _can_transition(current: str, new: str) -> bool:
    """Return True if an explicit status update may move ``current`` to ``new``."""
    transitions = {
        Appointment.STATUS_PENDING: [
            Appointment.STATUS_CONFIRMED,
            Appointment.STATUS_CANCELLED,
            Appointment.STATUS_COMPLETED,
            Appointment.STATUS_NOT_APPEARED,
        ],
        Appointment.STATUS_CONFIRMED: [
            Appointment.STATUS_CANCELLED,
            Appointment.STATUS_COMPLETED,
            Appointment.STATUS_NOT_APPEARED,
        ],
    }
    return new in transitions.get(current, [])


@dataclass
class LifecycleResult:
    appointment: Appointment
    patient: Optional[Patient] = None
    warnings: List[str] = field(default_factory=list)
    patient_status_changed: bool = False
    follow_up: Optional[Appointment] = None


def parse_slot_time(value) -> str:
    try:
        parsed = datetime.strptime(str(value).strip(), '%H:%M')
    except (TypeError, ValueError):
        raise ValidationError({'time': 'Time must be in HH:MM format.'})
    return parsed.strftime('%H:%M')


def parse_day(value) -> date_cls:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date_cls):
        return value
    try:
        return date_cls.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError({'date': 'Date must be in YYYY-MM-DD format.'})


def scheduled_at(appointment: Appointment, tz=None) -> Optional[datetime]:
    """Aware datetime of the appointment slot start, or None for a malformed time."""
    try:
        slot = datetime.strptime(appointment.time, '%H:%M').time()
    except (TypeError, ValueError):
        return None
    return timezone.make_aware(datetime.combine(appointment.date, slot), tz or timezone.get_current_timezone())


def _role(user: Optional[User]) -> Optional[str]:
    if user is None or not getattr(user, 'is_authenticated', False):
        return None
    return getattr(user, 'role', None)


def doctor_id_for(user: Optional[User]):
    profile = getattr(user, 'doctor_profile', None)
    return profile.pk if profile is not None else None


def patient_id_for(user: Optional[User]):
    record = getattr(user, 'patient_record', None)
    return record.pk if record is not None else None


def can_manage_appointment(user: Optional[User], appointment: Appointment) -> bool:
    """Admin anywhere, staff within their hospital, doctors on their own appointments."""
    role = _role(user)
    if role == User.ROLE_ADMIN:
        return True
    if role == User.ROLE_STAFF:
        return bool(user.hospital_id) and user.hospital_id == appointment.hospital_id
    if role == User.ROLE_DOCTOR:
        return doctor_id_for(user) == appointment.doctor_id
    return False


def can_view_appointment(user: Optional[User], appointment: Appointment) -> bool:
    if can_manage_appointment(user, appointment):
        return True
    if _role(user) == User.ROLE_PATIENT:
        pid = patient_id_for(user)
        return pid is not None and pid == appointment.patient_id
    return False


class LifecycleEngine:
    """State machine for appointments and the patient status rules tied to it."""

    def __init__(self, appointments: AppointmentStore, patients: PatientStore, emitter: ActivityEmitter,
                 notifier: Notifier, clock: Callable[[], datetime] = timezone.now,
                 synchronizer: Optional[PatientStatusSynchronizer] = None):
        self.appointments = appointments
        self.patients = patients
        self.emitter = emitter
        self.notifier = notifier
        self.clock = clock
        self.synchronizer = synchronizer or PatientStatusSynchronizer(patients, clock)

    @classmethod
    def default(cls) -> 'LifecycleEngine':
        return cls(AppointmentStore(), PatientStore(), ActivityEmitter(), Notifier())

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _locked(self, appointment_id) -> Appointment:
        appointment = self.appointments.get(appointment_id, for_update=True)
        if appointment is None:
            raise NotFound('Appointment not found.')
        return appointment

    def _require_manage(self, actor, appointment: Appointment) -> None:
        if not can_manage_appointment(actor, appointment):
            raise PermissionDenied('You do not have access to this appointment.')

    def _emit(self, result: LifecycleResult, event: str, actor, appointment: Appointment, *,
              subject_id=None, metadata: Optional[Dict] = None, details: str = '') -> None:
        warning = self.emitter.emit(
            event,
            actor=actor,
            subject_id=subject_id if subject_id is not None else appointment.pk,
            hospital_id=appointment.hospital_id,
            patient_id=appointment.patient_id,
            metadata=metadata,
            details=details,
        )
        if warning:
            result.warnings.append(warning)

    def _sync(self, result: LifecycleResult, outcome: SyncOutcome, actor, appointment: Appointment) -> None:
        if outcome.patient is not None:
            result.patient = outcome.patient
        if outcome.warning:
            result.warnings.append(outcome.warning)
            return
        if outcome.changed:
            result.patient_status_changed = True
            self._emit(result, 'patient_status', actor, appointment, subject_id=outcome.patient.pk, metadata={
                'previousStatus': outcome.previous_status,
                'newStatus': outcome.new_status,
                'treatmentDays': outcome.patient.treatment_days,
                'elapsedDays': outcome.elapsed_days,
                'appointmentId': appointment.pk,
            })

    def _bookable_doctor(self, doctor_id, hospital_id=None) -> Doctor:
        doctor = self.appointments.get_doctor(doctor_id)
        if doctor is None:
            raise NotFound('Doctor not found.')
        if hospital_id is not None and str(doctor.hospital_id) != str(hospital_id):
            raise ValidationError({'hospitalId': 'Doctor does not practise at this hospital.'})
        if not doctor.is_available or not doctor.user.is_active:
            raise ValidationError({'doctorId': 'Doctor is not available for appointments.'})
        return doctor

    def _insert(self, doctor: Doctor, day: date_cls, slot: str, resolve_patient: Callable[[], Patient], **fields):
        """Create an appointment in a free slot; the doctor row lock serializes competing bookings."""
        try:
            with transaction.atomic():
                self.appointments.lock_doctor(doctor.pk)
                if self.appointments.slot_taken(doctor.pk, day, slot):
                    raise SlotUnavailable()
                patient = resolve_patient()
                appointment = self.appointments.create(
                    patient=patient, doctor=doctor, hospital_id=doctor.hospital_id,
                    date=day, time=slot, **fields,
                )
        except IntegrityError:
            logger.warning('Slot race lost for doctor %s on %s %s', doctor.pk, day, slot)
            raise SlotUnavailable()
        return appointment, patient

    def _patient_from_details(self, details: Dict, doctor: Doctor) -> Patient:
        extra = {k: details[k] for k in PATIENT_DETAIL_FIELDS if details.get(k) not in (None, '')}
        patient, created = self.patients.get_or_create_by_email(
            details.get('email'),
            name=details['name'].strip(),
            hospital_id=doctor.hospital_id, primary_doctor=doctor,
            status=Patient.STATUS_ACTIVE, last_status_change_date=self.clock(),
            **extra,
        )
        if created:
            return patient
        return self._attach_to_doctor(patient, doctor)

    def _attach_to_doctor(self, patient: Patient, doctor: Doctor) -> Patient:
        changed = ['primary_doctor']
        patient.primary_doctor = doctor
        if patient.hospital_id is None:
            patient.hospital_id = doctor.hospital_id
            changed.append('hospital')
        self.patients.save(patient, changed)
        return patient

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------
    def book_appointment(self, *, doctor_id, patient_details: Dict, hospital_id, date, time,
                         type: str = 'consultation', notes: str = '', symptoms: str = '',
                         actor: Optional[User] = None) -> LifecycleResult:
        """Public booking: find or create the patient by email and hold the slot as pending."""
        details = dict(patient_details or {})
        required = {
            'doctorId': doctor_id,
            'hospitalId': hospital_id,
            'date': date,
            'time': time,
            'name': (details.get('name') or '').strip(),
            'email': (details.get('email') or '').strip(),
        }
        missing = [k for k, v in required.items() if not v]
        if missing:
            raise ValidationError({k: 'This field is required.' for k in missing})
        day = parse_day(date)
        slot = parse_slot_time(time)
        doctor = self._bookable_doctor(doctor_id, hospital_id)

        appointment, patient = self._insert(
            doctor, day, slot, lambda: self._patient_from_details(details, doctor),
            type=type or 'consultation', status=Appointment.STATUS_PENDING,
            notes=notes or '', symptoms=symptoms or '',
        )
        logger.info('Appointment %s booked for patient %s with doctor %s', appointment.pk, patient.pk, doctor.pk)

        result = LifecycleResult(appointment=appointment, patient=patient)
        self._sync(result, self.synchronizer.activate(patient.pk), actor, appointment)
        self._emit(result, 'booked', actor, appointment, metadata={
            'newStatus': appointment.status,
            'doctorId': doctor.pk,
            'date': day.isoformat(),
            'time': slot,
        })
        self.notifier.appointment_booked(appointment, result.patient)
        self.notifier.appointment_changed(appointment, 'booked')
        return result

    def create_appointment(self, *, actor: User, doctor_id, date, time, patient_id=None,
                           patient_details: Optional[Dict] = None, type: str = 'consultation',
                           notes: str = '', symptoms: str = '', confirm: bool = False) -> LifecycleResult:
        """Console booking by staff or admin, optionally confirmed straight away."""
        role = _role(actor)
        if role not in (User.ROLE_ADMIN, User.ROLE_STAFF):
            raise PermissionDenied('Only staff can create appointments from the console.')
        day = parse_day(date)
        slot = parse_slot_time(time)
        doctor = self._bookable_doctor(doctor_id)
        if role == User.ROLE_STAFF and actor.hospital_id != doctor.hospital_id:
            raise PermissionDenied('Doctor belongs to another hospital.')

        if patient_id is not None:
            existing = self.patients.get(patient_id)
            if existing is None:
                raise NotFound('Patient not found.')

            def resolve():
                return self._attach_to_doctor(existing, doctor)
        else:
            details = dict(patient_details or {})
            if not (details.get('name') or '').strip() or not (details.get('email') or '').strip():
                raise ValidationError({'patient': 'Provide patientId or patient name and email.'})

            def resolve():
                return self._patient_from_details(details, doctor)

        status = Appointment.STATUS_CONFIRMED if confirm else Appointment.STATUS_PENDING
        appointment, patient = self._insert(
            doctor, day, slot, resolve,
            type=type or 'consultation', status=status, notes=notes or '', symptoms=symptoms or '',
        )
        logger.info('Appointment %s created by user %s as %s', appointment.pk, actor.pk, status)

        result = LifecycleResult(appointment=appointment, patient=patient)
        self._sync(result, self.synchronizer.activate(patient.pk), actor, appointment)
        self._emit(result, 'created', actor, appointment, metadata={
            'newStatus': status,
            'doctorId': doctor.pk,
            'date': day.isoformat(),
            'time': slot,
        })
        self.notifier.appointment_booked(appointment, result.patient)
        self.notifier.appointment_changed(appointment, 'created')
        return result

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------
    def update_status(self, appointment_id, status: str, actor: Optional[User],
                      no_show_reason: Optional[str] = None) -> LifecycleResult:
        if status not in STATUSES:
            raise ValidationError({'status': f'Unknown appointment status: {status}.'})

        with transaction.atomic():
            appointment = self._locked(appointment_id)
            if _role(actor) == User.ROLE_PATIENT:
                if status != Appointment.STATUS_CANCELLED or not can_view_appointment(actor, appointment):
                    raise PermissionDenied('Patients may only cancel their own appointments.')
            else:
                self._require_manage(actor, appointment)

            previous = appointment.status
            if previous == status:
                # No transition; only a late no-show reason is kept.
                if status == Appointment.STATUS_NOT_APPEARED and no_show_reason:
                    appointment.no_show_reason = no_show_reason
                    self.appointments.save(appointment, ['no_show_reason'])
                unchanged = True
            else:
                unchanged = False
                self._apply_status(appointment, previous, status, no_show_reason)

        result = LifecycleResult(appointment=appointment)
        if status == Appointment.STATUS_CONFIRMED:
            # runs on a repeated confirm too
            self._sync(result, self.synchronizer.activate(appointment.patient_id), actor, appointment)
        if unchanged:
            return result

        logger.info('Appointment %s moved %s -> %s', appointment.pk, previous, status)
        metadata = {'previousStatus': previous, 'newStatus': status}
        if status == Appointment.STATUS_NOT_APPEARED and no_show_reason:
            metadata['noShowReason'] = no_show_reason
        self._emit(result, f'status:{status}', actor, appointment, metadata=metadata)
        self.notifier.appointment_changed(appointment, f'status:{status}')
        return result

    def _apply_status(self, appointment: Appointment, previous: str, status: str,
                      no_show_reason: Optional[str]) -> None:
        if not _can_transition(previous, status):
            raise InvalidTransition(previous, status)

        changed = ['status']
        appointment.status = status
        if status == Appointment.STATUS_NOT_APPEARED and no_show_reason:
            appointment.no_show_reason = no_show_reason
            changed.append('no_show_reason')
        if status == Appointment.STATUS_COMPLETED:
            now = self.clock()
            if appointment.check_in_time is None:
                appointment.check_in_time = appointment.consultation_start_time or now
                changed.append('check_in_time')
            if appointment.consultation_start_time is None:
                appointment.consultation_start_time = now
                changed.append('consultation_start_time')
        self.appointments.save(appointment, changed)

    def check_in(self, appointment_id, actor: Optional[User], check_in_time: Optional[datetime] = None) -> LifecycleResult:
        with transaction.atomic():
            appointment = self._locked(appointment_id)
            self._require_manage(actor, appointment)
            previous = appointment.status
            if previous not in (Appointment.STATUS_PENDING, Appointment.STATUS_CONFIRMED):
                raise InvalidTransition(detail=f'Cannot check in an appointment that is {previous}.')
            appointment.check_in_time = check_in_time or self.clock()
            appointment.status = Appointment.STATUS_CONFIRMED
            self.appointments.save(appointment, ['status', 'check_in_time'])
        logger.info('Appointment %s checked in at %s', appointment.pk, appointment.check_in_time)

        result = LifecycleResult(appointment=appointment)
        if previous == Appointment.STATUS_PENDING:
            self._sync(result, self.synchronizer.activate(appointment.patient_id), actor, appointment)
        self._emit(result, 'checked_in', actor, appointment, metadata={
            'previousStatus': previous,
            'newStatus': appointment.status,
            'checkInTime': appointment.check_in_time.isoformat(),
        })
        self.notifier.appointment_changed(appointment, 'checked_in')
        return result

    def record_treatment_outcome(self, appointment_id, actor: Optional[User], *, diagnosis: Optional[str] = None,
                                 disease: Optional[str] = None, treatment_outcome: Optional[str] = None,
                                 treatment_end_date=None) -> LifecycleResult:
        """Write clinical fields; a concluded outcome forces completion from any status."""
        if treatment_outcome is not None and treatment_outcome not in OUTCOMES:
            raise ValidationError({'treatmentOutcome': f'Invalid treatment outcome: {treatment_outcome}.'})

        with transaction.atomic():
            appointment = self._locked(appointment_id)
            self._require_manage(actor, appointment)
            previous_status = appointment.status
            previous_outcome = appointment.treatment_outcome
            changed = []
            if diagnosis is not None:
                appointment.diagnosis = diagnosis
                changed.append('diagnosis')
            if disease is not None:
                appointment.disease = disease
                changed.append('disease')
            if treatment_end_date is not None:
                appointment.treatment_end_date = parse_day(treatment_end_date)
                changed.append('treatment_end_date')
            if treatment_outcome is not None:
                appointment.treatment_outcome = treatment_outcome
                changed.append('treatment_outcome')
                if treatment_outcome != Appointment.OUTCOME_ONGOING:
                    appointment.status = Appointment.STATUS_COMPLETED
                    changed.append('status')
            if changed:
                self.appointments.save(appointment, changed)
        logger.info('Treatment outcome for appointment %s set to %s', appointment.pk, appointment.treatment_outcome)

        result = LifecycleResult(appointment=appointment)
        if treatment_outcome is not None:
            self._sync(result, self.synchronizer.apply_outcome(appointment.patient_id, treatment_outcome),
                       actor, appointment)
        self._emit(result, 'treatment', actor, appointment, metadata={
            'previousStatus': previous_status,
            'newStatus': appointment.status,
            'previousOutcome': previous_outcome,
            'treatmentOutcome': appointment.treatment_outcome,
            'disease': appointment.disease,
        })
        if previous_status != appointment.status:
            self.notifier.appointment_changed(appointment, 'treatment')
        return result

    # ------------------------------------------------------------------
    # Reports and follow-ups
    # ------------------------------------------------------------------
    def conclude_from_report(self, report: Report, actor: Optional[User], follow_up_date=None) -> LifecycleResult:
        """A written report concludes its appointment and may schedule a follow-up."""
        with transaction.atomic():
            appointment = self._locked(report.appointment_id)
            previous = appointment.status
            if previous != Appointment.STATUS_COMPLETED:
                appointment.status = Appointment.STATUS_COMPLETED
                self.appointments.save(appointment, ['status'])

        result = LifecycleResult(appointment=appointment)
        self._emit(result, 'report_generated', actor, appointment, subject_id=report.pk, metadata={
            'reportNumber': report.report_number,
            'type': report.type,
            'appointmentId': appointment.pk,
        })
        if previous != Appointment.STATUS_COMPLETED:
            self._emit(result, 'status:completed', actor, appointment, metadata={
                'previousStatus': previous,
                'newStatus': appointment.status,
                'reportId': report.pk,
            })
            self.notifier.appointment_changed(appointment, 'status:completed')
        if follow_up_date:
            self._spawn_follow_up(result, report, appointment, follow_up_date, actor)
        return result

    def _spawn_follow_up(self, result: LifecycleResult, report: Report, appointment: Appointment,
                         follow_up_date, actor) -> None:
        try:
            with transaction.atomic():
                follow_up = self.appointments.create(
                    patient_id=appointment.patient_id,
                    doctor_id=appointment.doctor_id,
                    hospital_id=appointment.hospital_id,
                    date=parse_day(follow_up_date),
                    time=FOLLOW_UP_PLACEHOLDER_TIME,
                    type='followup',
                    status=Appointment.STATUS_PENDING,
                    notes=f'Follow-up for report {report.report_number}',
                    is_follow_up=True,
                    needs_time_slot=True,
                    original_appointment=appointment,
                    related_report=report,
                )
                report.follow_up_appointment = follow_up
                report.save(update_fields=['follow_up_appointment'])
        except Exception:
            logger.exception('Failed to schedule follow-up for report %s', report.pk)
            result.warnings.append('Follow-up appointment could not be scheduled.')
            return
        logger.info('Follow-up %s scheduled from report %s', follow_up.pk, report.pk)

        result.follow_up = follow_up
        self._sync(result, self.synchronizer.activate(follow_up.patient_id), actor, follow_up)
        self._emit(result, 'followup_scheduled', actor, follow_up, metadata={
            'originalAppointmentId': appointment.pk,
            'reportId': report.pk,
            'followUpDate': follow_up.date.isoformat(),
        })
        self.notifier.appointment_changed(follow_up, 'followup_scheduled')

    def update_follow_up(self, appointment_id, actor: Optional[User], *, time: Optional[str] = None, date=None,
                         time_slot_confirmed: Optional[bool] = None,
                         reminder_sent: Optional[bool] = None) -> LifecycleResult:
        """Assign a real slot to a follow-up, or update its reminder flags."""
        try:
            with transaction.atomic():
                appointment = self._locked(appointment_id)
                self._require_manage(actor, appointment)
                if not appointment.is_follow_up:
                    raise ValidationError('This is not a follow-up appointment.')
                if appointment.is_terminal:
                    raise InvalidTransition(detail=f'Follow-up appointment is already {appointment.status}.')

                before = {
                    'date': appointment.date.isoformat(),
                    'time': appointment.time,
                    'needsTimeSlot': appointment.needs_time_slot,
                }
                changed = []
                if date is not None:
                    appointment.date = parse_day(date)
                    changed.append('date')
                if time is not None:
                    appointment.time = parse_slot_time(time)
                    appointment.needs_time_slot = False
                    changed += ['time', 'needs_time_slot']
                if time_slot_confirmed is not None:
                    appointment.time_slot_confirmed = bool(time_slot_confirmed)
                    changed.append('time_slot_confirmed')
                if reminder_sent is not None:
                    appointment.reminder_sent = bool(reminder_sent)
                    changed.append('reminder_sent')
                if not changed:
                    return LifecycleResult(appointment=appointment)

                if not appointment.needs_time_slot and ('time' in changed or 'date' in changed):
                    self.appointments.lock_doctor(appointment.doctor_id)
                    if self.appointments.slot_taken(appointment.doctor_id, appointment.date, appointment.time,
                                                    exclude_id=appointment.pk):
                        raise SlotUnavailable()
                self.appointments.save(appointment, changed)
        except IntegrityError:
            raise SlotUnavailable()
        logger.info('Follow-up %s updated: %s', appointment.pk, ', '.join(changed))

        result = LifecycleResult(appointment=appointment)
        self._emit(result, 'followup_updated', actor, appointment, metadata={
            'before': before,
            'date': appointment.date.isoformat(),
            'time': appointment.time,
            'needsTimeSlot': appointment.needs_time_slot,
            'timeSlotConfirmed': appointment.time_slot_confirmed,
            'reminderSent': appointment.reminder_sent,
        })
        self.notifier.appointment_changed(appointment, 'followup_updated')
        return result

    # ------------------------------------------------------------------
    # Scheduled sweep
    # ------------------------------------------------------------------
    def sweep_no_shows(self, now: Optional[datetime] = None,
                       grace_minutes: Optional[int] = None) -> List[LifecycleResult]:
        """Move confirmed appointments past their slot plus the grace period to not_appeared.

        Each row is flipped with a conditional update, so an appointment
        already moved by a concurrent or earlier run is skipped and gets
        no second activity entry.
        """
        now = now or self.clock()
        grace = settings.NO_SHOW_GRACE_MINUTES if grace_minutes is None else grace_minutes
        tz = timezone.get_current_timezone()
        results: List[LifecycleResult] = []
        for appointment in list(self.appointments.confirmed_due_by(timezone.localtime(now, tz).date())):
            start = scheduled_at(appointment, tz)
            if start is None:
                logger.warning('Skipping appointment %s with malformed time %r', appointment.pk, appointment.time)
                continue
            if now <= start + timedelta(minutes=grace):
                continue
            if self.appointments.mark_not_appeared(appointment.pk) != 1:
                continue
            appointment.status = Appointment.STATUS_NOT_APPEARED
            result = LifecycleResult(appointment=appointment)
            self._emit(result, 'no_show_swept', None, appointment, metadata={
                'previousStatus': Appointment.STATUS_CONFIRMED,
                'newStatus': Appointment.STATUS_NOT_APPEARED,
                'scheduledAt': start.isoformat(),
                'graceMinutes': grace,
            })
            self.notifier.appointment_changed(appointment, 'no_show_swept')
            results.append(result)
        logger.info('No-show sweep at %s moved %d appointment(s)', now.isoformat(), len(results))
        return results

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def available_slots(self, doctor_id, date) -> List[str]:
        day = parse_day(date)
        doctor = self.appointments.get_doctor(doctor_id)
        if doctor is None:
            raise NotFound('Doctor not found.')
        if not doctor.is_available or not doctor.user.is_active:
            return []
        held = self.appointments.held_times(doctor.pk, day)
        return [slot for slot in settings.APPOINTMENT_SLOTS if slot not in held]
