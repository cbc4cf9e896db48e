import logging
from typing import Any, Dict, Optional

from django.db import transaction
from django.db.models import Q

from care.models import Activity, User

logger = logging.getLogger(__name__)

# event -> (action, subject, severity, description)
TRANSITIONS = {
    'booked': ('appointment_created', 'appointment', 'success', 'Appointment booked'),
    'created': ('appointment_created', 'appointment', 'success', 'Appointment created'),
    'status:confirmed': ('appointment_confirmed', 'appointment', 'success', 'Appointment confirmed'),
    'status:cancelled': ('appointment_cancelled', 'appointment', 'warning', 'Appointment cancelled'),
    'status:completed': ('appointment_completed', 'appointment', 'success', 'Appointment completed'),
    'status:not_appeared': ('appointment_not_appeared', 'appointment', 'warning', 'Patient did not appear'),
    'checked_in': ('patient_checked_in', 'appointment', 'success', 'Patient checked in'),
    'no_show_swept': (
        'appointment_not_appeared', 'appointment', 'warning',
        'Patient did not appear within the grace period',
    ),
    'treatment': ('update_treatment', 'appointment', 'success', 'Treatment outcome recorded'),
    'patient_status': ('update_patient_status', 'patient', 'success', 'Patient status changed'),
    'followup_scheduled': ('followup_scheduled', 'appointment', 'success', 'Follow-up appointment scheduled'),
    'followup_updated': ('followup_updated', 'appointment', 'success', 'Follow-up appointment updated'),
    'report_generated': ('report_generated', 'report', 'success', 'Medical report generated'),
}


def describe_actor(user: Optional[User]) -> Dict[str, Any]:
    if user is None or not getattr(user, 'pk', None):
        return {'user': None, 'actor_name': 'System', 'actor_email': '', 'actor_role': 'system'}
    return {
        'user': user,
        'actor_name': user.get_full_name() or user.username,
        'actor_email': user.email or '',
        'actor_role': getattr(user, 'role', None) or 'system',
    }


class ActivityEmitter:
    """Append one :class:`Activity` row per accepted transition.

    ``emit`` never raises: a failed write is logged and handed back as a
    warning string so the caller can attach it to its result.
    """

    def __init__(self, table: Optional[Dict[str, tuple]] = None):
        self.table = table or TRANSITIONS

    def emit(self, event: str, *, actor: Optional[User], subject_id, hospital_id=None, patient_id=None,
             metadata: Optional[Dict[str, Any]] = None, details: str = '') -> Optional[str]:
        try:
            action, subject, severity, description = self.table[event]
            with transaction.atomic():
                Activity.objects.create(
                    **describe_actor(actor),
                    hospital_id=hospital_id,
                    patient_id=patient_id,
                    action=action,
                    subject=subject,
                    subject_id=str(subject_id),
                    description=description,
                    details=details or '',
                    status=severity,
                    metadata=metadata or {},
                )
        except Exception:
            logger.exception('Failed to record %s activity for %s', event, subject_id)
            return f'Activity log for {event} could not be written.'
        return None


def _serialize(a: Activity) -> dict:
    return {
        'id': a.id,
        'action': a.action,
        'subject': a.subject,
        'subjectId': a.subject_id,
        'description': a.description,
        'details': a.details,
        'status': a.status,
        'metadata': a.metadata,
        'hospitalId': a.hospital_id,
        'patientId': a.patient_id,
        'actor': {
            'id': a.user_id,
            'name': a.actor_name,
            'email': a.actor_email,
            'role': a.actor_role,
        },
        'createdAt': a.created_at.isoformat() if a.created_at else None,
    }


def list_activities(user: User, *, hospital_id=None, patient_id=None, action=None, subject=None, status=None,
                    date_from=None, date_to=None, q=None, page: int = 1, page_size: int = 20):
    qs = Activity.objects.all()
    if getattr(user, 'role', '') == User.ROLE_ADMIN:
        if hospital_id:
            qs = qs.filter(hospital_id=hospital_id)
    else:
        qs = qs.filter(hospital_id=getattr(user, 'hospital_id', None))

    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    if action:
        qs = qs.filter(action=action)
    if subject:
        qs = qs.filter(subject=subject)
    if status:
        qs = qs.filter(status=status)
    if date_from:
        qs = qs.filter(created_at__date__gte=date_from)
    if date_to:
        qs = qs.filter(created_at__date__lte=date_to)
    if q:
        qs = qs.filter(Q(description__icontains=q) | Q(details__icontains=q) | Q(actor_name__icontains=q))

    total = qs.count()
    page = max(1, int(page or 1))
    page_size = min(100, max(1, int(page_size or 20)))
    start = (page - 1) * page_size
    items = qs.order_by('-created_at', '-id')[start:start + page_size]
    return [_serialize(a) for a in items], total
