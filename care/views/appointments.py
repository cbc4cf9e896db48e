"""
Appointment endpoints.

Booking is public; everything else needs an authenticated account.
Staff see their own hospital, doctors their own appointments and
admins everything.  State changes are delegated to
:class:`care.services.lifecycle.LifecycleEngine` and answer with
``{'ok': True, 'data': <appointment>, 'warnings': [...]}``; a non-empty
``warnings`` list means the appointment changed but a side effect
(patient status, activity log) did not go through.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotAuthenticated, NotFound, PermissionDenied
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from ..models import Appointment, User
from ..permissions import IsClinicalUser, IsStaffOrAdmin
from ..serializers.appointment import (
    AppointmentListQuerySerializer,
    AvailableSlotsQuerySerializer,
    BookAppointmentSerializer,
    CheckInSerializer,
    CreateAppointmentSerializer,
    FollowUpListQuerySerializer,
    FollowUpUpdateSerializer,
    StatusUpdateSerializer,
    TreatmentOutcomeSerializer,
)
from ..services.lifecycle import LifecycleEngine, LifecycleResult, can_view_appointment, doctor_id_for


def _engine() -> LifecycleEngine:
    return LifecycleEngine.default()


def _iso(value):
    return value.isoformat() if value else None


def serialize_appointment(a: Appointment) -> dict:
    doctor_user = a.doctor.user
    return {
        'id': a.id,
        'patientId': a.patient_id,
        'patientName': a.patient.name,
        'doctorId': a.doctor_id,
        'doctorName': doctor_user.get_full_name() or doctor_user.username,
        'hospitalId': a.hospital_id,
        'date': _iso(a.date),
        'time': a.time,
        'type': a.type,
        'status': a.status,
        'symptoms': a.symptoms,
        'notes': a.notes,
        'diagnosis': a.diagnosis,
        'disease': a.disease,
        'treatmentOutcome': a.treatment_outcome,
        'treatmentEndDate': _iso(a.treatment_end_date),
        'noShowReason': a.no_show_reason,
        'checkInTime': _iso(a.check_in_time),
        'consultationStartTime': _iso(a.consultation_start_time),
        'isFollowUp': a.is_follow_up,
        'needsTimeSlot': a.needs_time_slot,
        'timeSlotConfirmed': a.time_slot_confirmed,
        'reminderSent': a.reminder_sent,
        'originalAppointmentId': a.original_appointment_id,
        'relatedReportId': a.related_report_id,
        'createdAt': _iso(a.created_at),
        'updatedAt': _iso(a.updated_at),
    }


def result_response(result: LifecycleResult, status_code: int = status.HTTP_200_OK) -> Response:
    payload = {
        'ok': True,
        'data': serialize_appointment(result.appointment),
        'warnings': result.warnings,
    }
    if result.patient is not None:
        payload['patient'] = {
            'id': result.patient.id,
            'status': result.patient.status,
            'treatmentDays': result.patient.treatment_days,
            'statusChanged': result.patient_status_changed,
        }
    if result.follow_up is not None:
        payload['followUp'] = serialize_appointment(result.follow_up)
    return Response(payload, status=status_code)


def _actor(request):
    user = getattr(request, 'user', None)
    return user if user is not None and user.is_authenticated else None


def scope_appointments(qs, user: User):
    role = getattr(user, 'role', None)
    if role == User.ROLE_ADMIN:
        return qs
    if role == User.ROLE_STAFF:
        return qs.filter(hospital_id=user.hospital_id)
    if role == User.ROLE_DOCTOR:
        return qs.filter(doctor_id=doctor_id_for(user))
    return qs.none()


def _paged_list(qs, query: dict) -> Response:
    for key in ('doctor_id', 'hospital_id', 'patient_id', 'status', 'date'):
        if query.get(key) is not None:
            qs = qs.filter(**{key: query[key]})
    total = qs.count()
    page = query.get('page') or 1
    page_size = query.get('page_size') or 20
    start = (page - 1) * page_size
    items = qs.select_related('patient', 'doctor__user').order_by('-date', 'time', '-id')[start:start + page_size]
    return Response({
        'ok': True,
        'data': [serialize_appointment(a) for a in items],
        'pagination': {'total': total, 'page': page, 'pageSize': page_size},
    })


@api_view(['GET', 'POST'])
@permission_classes([AllowAny])
def appointments(request):
    """GET lists appointments visible to the caller; POST books one (public)."""
    if request.method == 'GET':
        user = _actor(request)
        if user is None:
            raise NotAuthenticated()
        if not IsClinicalUser().has_permission(request, None):
            raise PermissionDenied('Only clinic accounts can list appointments.')
        q = AppointmentListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        return _paged_list(scope_appointments(Appointment.objects.all(), user), q.validated_data)

    s = BookAppointmentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    result = _engine().book_appointment(actor=_actor(request), **s.validated_data)
    return result_response(result, status.HTTP_201_CREATED)


appointments.cls.throttle_scope = 'booking'


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsStaffOrAdmin])
def create_appointment(request):
    """Console booking for an existing patient or new patient details."""
    s = CreateAppointmentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    result = _engine().create_appointment(actor=request.user, **s.validated_data)
    return result_response(result, status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([AllowAny])
def available_slots(request):
    q = AvailableSlotsQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    slots = _engine().available_slots(vd['doctor_id'], vd['date'])
    return Response({'ok': True, 'data': {'doctorId': vd['doctor_id'], 'date': vd['date'].isoformat(), 'slots': slots}})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicalUser])
def follow_ups(request):
    q = FollowUpListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = dict(q.validated_data)
    qs = scope_appointments(Appointment.objects.filter(is_follow_up=True), request.user)
    needs = vd.pop('needs_time_slot', None)
    if needs is not None:
        qs = qs.filter(needs_time_slot=(needs == 'true'))
    return _paged_list(qs, vd)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def appointment_detail(request, pk: int):
    appointment = Appointment.objects.select_related('patient', 'doctor__user').filter(pk=pk).first()
    if not appointment:
        raise NotFound('Appointment not found.')
    if not can_view_appointment(request.user, appointment):
        raise PermissionDenied('You do not have access to this appointment.')
    return Response({'ok': True, 'data': serialize_appointment(appointment)})


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def update_status(request, pk: int):
    """Explicit status change.  Patients may only cancel their own appointment."""
    s = StatusUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    result = _engine().update_status(pk, vd['status'], request.user, no_show_reason=vd.get('no_show_reason'))
    return result_response(result)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsClinicalUser])
def check_in(request, pk: int):
    s = CheckInSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    result = _engine().check_in(pk, request.user, check_in_time=s.validated_data.get('check_in_time'))
    return result_response(result)


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def treatment_outcome(request, pk: int):
    s = TreatmentOutcomeSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    result = _engine().record_treatment_outcome(pk, request.user, **s.validated_data)
    return result_response(result)


@api_view(['PUT'])
@permission_classes([IsAuthenticated, IsClinicalUser])
def update_follow_up(request, pk: int):
    s = FollowUpUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    result = _engine().update_follow_up(pk, request.user, **s.validated_data)
    return result_response(result)
