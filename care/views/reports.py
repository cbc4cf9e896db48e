from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Report
from ..permissions import IsClinicalUser
from ..serializers.report import ReportCreateSerializer
from ..services.reports import create_report
from .appointments import serialize_appointment


def _serialize(r: Report) -> dict:
    return {
        'id': r.id,
        'reportNumber': r.report_number,
        'type': r.type,
        'appointmentId': r.appointment_id,
        'patientId': r.patient_id,
        'doctorId': r.doctor_id,
        'hospitalId': r.hospital_id,
        'diagnosis': r.diagnosis,
        'prescription': r.prescription,
        'notes': r.notes,
        'followUpDate': r.follow_up_date.isoformat() if r.follow_up_date else None,
        'followUpAppointmentId': r.follow_up_appointment_id,
        'createdBy': r.created_by_id,
        'createdAt': r.created_at.isoformat() if r.created_at else None,
    }


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsClinicalUser])
def reports(request):
    """Create a report; its appointment is completed and a follow-up may be scheduled."""
    s = ReportCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    report, result = create_report(request.user, **s.validated_data)
    payload = {
        'ok': True,
        'data': _serialize(report),
        'appointment': serialize_appointment(result.appointment),
        'warnings': result.warnings,
    }
    if result.follow_up is not None:
        payload['followUp'] = serialize_appointment(result.follow_up)
    return Response(payload, status=status.HTTP_201_CREATED)
