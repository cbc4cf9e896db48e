import logging
import secrets
from typing import Optional, Tuple

import bleach
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied

from care.models import Appointment, Report, User
from care.services.lifecycle import LifecycleEngine, LifecycleResult, can_manage_appointment

logger = logging.getLogger(__name__)


def _report_number() -> str:
    return f"RPT-{timezone.now():%Y%m%d}-{secrets.token_hex(4).upper()}"


def create_report(actor: User, *, appointment_id, type: str = 'general', diagnosis: str = '',
                  prescription: str = '', notes: str = '', follow_up_date=None,
                  engine: Optional[LifecycleEngine] = None) -> Tuple[Report, LifecycleResult]:
    """Store a medical report and conclude its appointment.

    The report write is the primary operation.  Completing the
    appointment and spawning a follow-up run afterwards through the
    lifecycle engine and may only add warnings.
    """
    engine = engine or LifecycleEngine.default()
    appointment = Appointment.objects.select_related('doctor').filter(pk=appointment_id).first()
    if not appointment:
        raise NotFound('Appointment not found.')
    if not can_manage_appointment(actor, appointment):
        raise PermissionDenied('You cannot write a report for this appointment.')

    with transaction.atomic():
        report = Report.objects.create(
            appointment=appointment,
            patient_id=appointment.patient_id,
            doctor_id=appointment.doctor_id,
            hospital_id=appointment.hospital_id,
            report_number=_report_number(),
            type=type or 'general',
            diagnosis=bleach.clean((diagnosis or '').strip(), strip=True),
            prescription=bleach.clean((prescription or '').strip(), strip=True),
            notes=bleach.clean((notes or '').strip(), strip=True),
            follow_up_date=follow_up_date,
            created_by=actor,
        )
    logger.info('Report %s created for appointment %s', report.report_number, appointment.pk)

    result = engine.conclude_from_report(report, actor, follow_up_date=follow_up_date)
    return report, result
