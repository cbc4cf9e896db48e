import logging
from typing import Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.core.mail import send_mail

from care.models import Appointment, Patient

logger = logging.getLogger(__name__)


def hospital_group(hospital_id) -> str:
    return f"hospital.{hospital_id}"


class Notifier:
    """Outbound notifications for appointment changes.

    Every method swallows and logs its own failures; a mail server or
    channel layer outage must never fail the business operation.
    """

    def appointment_booked(self, appointment: Appointment, patient: Optional[Patient]) -> bool:
        if patient is None or not patient.email:
            return False
        doctor = appointment.doctor
        doctor_name = doctor.user.get_full_name() or doctor.user.username
        subject = f"Appointment request received for {appointment.date:%Y-%m-%d} at {appointment.time}"
        body = (
            f"Dear {patient.name},\n\n"
            f"Your appointment with Dr {doctor_name} ({doctor.specialization}) at "
            f"{appointment.hospital.name} on {appointment.date:%Y-%m-%d} at {appointment.time} "
            f"has been received and is {appointment.get_status_display().lower()}.\n\n"
            f"Reference: {appointment.pk}\n"
        )
        try:
            send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [patient.email], fail_silently=False)
        except Exception:
            logger.exception('Failed to send booking confirmation for appointment %s', appointment.pk)
            return False
        return True

    def appointment_changed(self, appointment: Appointment, event: str) -> bool:
        channel_layer = get_channel_layer()
        if channel_layer is None:
            return False
        payload = {
            "type": "appointment.changed",
            "event": event,
            "appointmentId": appointment.pk,
            "doctorId": appointment.doctor_id,
            "patientId": appointment.patient_id,
            "status": appointment.status,
            "date": appointment.date.isoformat() if hasattr(appointment.date, 'isoformat') else str(appointment.date),
            "time": appointment.time,
        }
        try:
            async_to_sync(channel_layer.group_send)(hospital_group(appointment.hospital_id), payload)
        except Exception:
            logger.exception('Failed to broadcast %s for appointment %s', event, appointment.pk)
            return False
        return True
