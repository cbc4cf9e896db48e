"""
Patient active/inactive status rules.

The synchronizer is a best-effort side channel of the lifecycle engine:
a missing patient or a failed save never propagates as an exception,
it comes back as a warning on :class:`SyncOutcome` while the
appointment change that triggered it stays committed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from django.db import transaction
from django.utils import timezone

from care.models import Appointment, Patient
from care.services.stores import PatientStore

logger = logging.getLogger(__name__)

STATUS_FIELDS = ('status', 'last_status_change_date', 'treatment_days')


@dataclass
class SyncOutcome:
    patient: Optional[Patient] = None
    changed: bool = False
    previous_status: Optional[str] = None
    new_status: Optional[str] = None
    elapsed_days: int = 0
    warning: Optional[str] = None


def elapsed_days(since, now) -> int:
    """Whole days between ``since`` and ``now``, never negative."""
    if since is None:
        return 0
    return max(0, (now - since).days)


class PatientStatusSynchronizer:
    def __init__(self, patients: PatientStore, clock: Callable = timezone.now):
        self.patients = patients
        self.clock = clock

    def activate(self, patient_id) -> SyncOutcome:
        """Activation rule: an inactive patient becomes active, an active one is left alone."""
        return self._run(patient_id, self._activate)

    def apply_outcome(self, patient_id, outcome: str) -> SyncOutcome:
        """React to a treatment outcome being recorded."""
        if outcome in (Appointment.OUTCOME_SUCCESSFUL, Appointment.OUTCOME_UNSUCCESSFUL):
            return self._run(patient_id, self._deactivate)
        if outcome == Appointment.OUTCOME_ONGOING:
            return self._run(patient_id, self._activate)
        # partial keeps the patient engaged
        return SyncOutcome()

    def _run(self, patient_id, rule: Callable[[Patient], SyncOutcome]) -> SyncOutcome:
        try:
            with transaction.atomic():
                patient = self.patients.get(patient_id, for_update=True)
                if patient is None:
                    logger.warning('Patient %s not found while synchronizing status', patient_id)
                    return SyncOutcome(warning=f'Patient {patient_id} not found; patient status was not updated.')
                return rule(patient)
        except Exception:
            logger.exception('Failed to synchronize status for patient %s', patient_id)
            return SyncOutcome(warning='Patient status could not be updated.')

    def _activate(self, patient: Patient) -> SyncOutcome:
        if patient.status == Patient.STATUS_ACTIVE:
            return SyncOutcome(patient=patient, previous_status=patient.status, new_status=patient.status)
        previous = patient.status
        patient.status = Patient.STATUS_ACTIVE
        patient.last_status_change_date = self.clock()
        self.patients.save(patient, STATUS_FIELDS)
        logger.info('Patient %s activated', patient.pk)
        return SyncOutcome(patient=patient, changed=True, previous_status=previous, new_status=patient.status)

    def _deactivate(self, patient: Patient) -> SyncOutcome:
        if patient.status != Patient.STATUS_ACTIVE:
            return SyncOutcome(patient=patient, previous_status=patient.status, new_status=patient.status)
        now = self.clock()
        days = elapsed_days(patient.last_status_change_date, now)
        patient.treatment_days = (patient.treatment_days or 0) + days
        patient.status = Patient.STATUS_INACTIVE
        patient.last_status_change_date = now
        self.patients.save(patient, STATUS_FIELDS)
        logger.info('Patient %s deactivated after %s treatment days', patient.pk, days)
        return SyncOutcome(
            patient=patient, changed=True, previous_status=Patient.STATUS_ACTIVE,
            new_status=patient.status, elapsed_days=days,
        )
