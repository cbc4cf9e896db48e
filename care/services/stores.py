"""
ORM-backed stores used by the lifecycle services.

The engine and the patient status synchronizer never touch the model
managers directly; they receive a store instance.  This keeps every
query the state machine depends on in one place and lets tests hand in
a store whose methods fail on demand.
"""
from __future__ import annotations

from datetime import date as date_cls
from typing import Iterable, Optional, Tuple

from django.db import IntegrityError, transaction
from django.db.models import QuerySet
from django.utils import timezone

from care.models import Appointment, Doctor, Hospital, Patient


class PatientStore:
    """Lookup and persistence of :class:`Patient` records."""

    def get(self, patient_id, *, for_update: bool = False) -> Optional[Patient]:
        qs = Patient.objects.all()
        if for_update:
            qs = qs.select_for_update()
        return qs.filter(pk=patient_id).first()

    def find_by_email(self, email: str) -> Optional[Patient]:
        email = (email or '').strip()
        if not email:
            return None
        return Patient.objects.filter(email__iexact=email).order_by('id').first()

    def get_or_create_by_email(self, email: str, **defaults) -> Tuple[Patient, bool]:
        """Find a patient by normalised e-mail, creating one if there is none.

        A concurrent booking that inserted the same address first trips the
        case-insensitive unique constraint; its row is returned instead.
        """
        email = (email or '').strip().lower()
        patient = self.find_by_email(email)
        if patient is not None:
            return patient, False
        try:
            with transaction.atomic():
                return Patient.objects.create(email=email, **defaults), True
        except IntegrityError:
            patient = self.find_by_email(email)
            if patient is None:
                raise
            return patient, False

    def save(self, patient: Patient, fields: Iterable[str]) -> None:
        patient.save(update_fields=[*fields, 'updated_at'])


class AppointmentStore:
    """Lookup and persistence of :class:`Appointment` records and slot checks."""

    def get(self, appointment_id, *, for_update: bool = False) -> Optional[Appointment]:
        qs = Appointment.objects.all()
        if for_update:
            qs = qs.select_for_update()
        return qs.filter(pk=appointment_id).first()

    def get_doctor(self, doctor_id) -> Optional[Doctor]:
        return Doctor.objects.select_related('user').filter(pk=doctor_id).first()

    def get_hospital(self, hospital_id) -> Optional[Hospital]:
        return Hospital.objects.filter(pk=hospital_id).first()

    def lock_doctor(self, doctor_id) -> Doctor:
        """Take a row lock on the doctor so slot checks for them are serialized."""
        return Doctor.objects.select_for_update().get(pk=doctor_id)

    def live_slots(self, doctor_id, day) -> QuerySet:
        """Appointments holding a real slot for this doctor on ``day``."""
        return Appointment.objects.filter(
            doctor_id=doctor_id, date=day, needs_time_slot=False,
        ).exclude(status=Appointment.STATUS_CANCELLED)

    def slot_taken(self, doctor_id, day, time: str, *, exclude_id=None) -> bool:
        qs = self.live_slots(doctor_id, day).filter(time=time)
        if exclude_id is not None:
            qs = qs.exclude(pk=exclude_id)
        return qs.exists()

    def held_times(self, doctor_id, day) -> set[str]:
        return set(self.live_slots(doctor_id, day).values_list('time', flat=True))

    def create(self, **fields) -> Appointment:
        return Appointment.objects.create(**fields)

    def save(self, appointment: Appointment, fields: Iterable[str]) -> None:
        appointment.save(update_fields=[*fields, 'updated_at'])

    def confirmed_due_by(self, day: date_cls) -> QuerySet:
        """Confirmed appointments scheduled on or before ``day``.

        Follow-ups still waiting for a real time slot are left out.
        """
        return (
            Appointment.objects.filter(status=Appointment.STATUS_CONFIRMED, date__lte=day, needs_time_slot=False)
            .order_by('date', 'time', 'id')
        )

    def mark_not_appeared(self, appointment_id) -> int:
        """Flip a still-confirmed appointment to not_appeared.

        Returns the number of rows changed; 0 means somebody else already
        moved the appointment on.
        """
        return Appointment.objects.filter(
            pk=appointment_id, status=Appointment.STATUS_CONFIRMED,
        ).update(status=Appointment.STATUS_NOT_APPEARED, updated_at=timezone.now())
