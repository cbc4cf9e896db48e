"""
Patient read endpoints.

Exposes the status fields maintained by the patient status
synchronizer together with the patient's appointment history.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Patient, User
from ..permissions import IsClinicalUser
from ..services.lifecycle import doctor_id_for
from .appointments import scope_appointments, serialize_appointment


def _serialize(p: Patient) -> dict:
    return {
        'id': p.id,
        'name': p.name,
        'email': p.email,
        'phone': p.phone,
        'gender': p.gender,
        'age': p.age,
        'dateOfBirth': p.date_of_birth.isoformat() if p.date_of_birth else None,
        'bloodGroup': p.blood_group,
        'allergies': p.allergies,
        'medicalHistory': p.medical_history,
        'emergencyContact': p.emergency_contact,
        'hospitalId': p.hospital_id,
        'primaryDoctorId': p.primary_doctor_id,
        'status': p.status,
        'treatmentDays': p.treatment_days,
        'lastStatusChangeDate': p.last_status_change_date.isoformat() if p.last_status_change_date else None,
        'createdAt': p.created_at.isoformat() if p.created_at else None,
        'updatedAt': p.updated_at.isoformat() if p.updated_at else None,
    }


def _can_access(user: User, patient: Patient) -> bool:
    if user.role == User.ROLE_ADMIN:
        return True
    if user.role == User.ROLE_STAFF:
        return bool(user.hospital_id) and (
            patient.hospital_id == user.hospital_id
            or patient.appointments.filter(hospital_id=user.hospital_id).exists()
        )
    if user.role == User.ROLE_DOCTOR:
        return patient.appointments.filter(doctor_id=doctor_id_for(user)).exists()
    return False


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicalUser])
def patient_detail(request, pk: int):
    patient = Patient.objects.filter(pk=pk).first()
    if not patient:
        raise NotFound('Patient not found.')
    if not _can_access(request.user, patient):
        raise PermissionDenied('You do not have access to this patient.')
    appts = (
        scope_appointments(patient.appointments.all(), request.user)
        .select_related('patient', 'doctor__user')
        .order_by('-date', '-time')
    )
    data = _serialize(patient)
    data['appointments'] = [serialize_appointment(a) for a in appts]
    return Response({'ok': True, 'data': data})
