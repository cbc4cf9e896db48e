import re

import bleach
from rest_framework import serializers

from care.models import Appointment, Patient

TIME_RE = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')


def _clean(v):
    return bleach.clean((v or '').strip(), strip=True)


def _validate_time(v):
    v = (v or '').strip()
    if not TIME_RE.match(v):
        raise serializers.ValidationError('Time must be in HH:MM format.')
    return v


class PatientDetailsSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    phone = serializers.CharField(required=False, allow_blank=True, max_length=32)
    gender = serializers.ChoiceField(choices=Patient.GENDER_CHOICES, required=False)
    age = serializers.IntegerField(required=False, allow_null=True, min_value=0, max_value=150)
    dateOfBirth = serializers.DateField(source='date_of_birth', required=False, allow_null=True)
    bloodGroup = serializers.CharField(source='blood_group', required=False, allow_blank=True, max_length=16)

    def validate_name(self, v):
        v = _clean(v)
        if len(v) < 2:
            raise serializers.ValidationError('Name must be at least 2 characters.')
        return v

    def validate_email(self, v):
        return v.strip().lower()

    def validate_phone(self, v):
        return _clean(v)


class BookAppointmentSerializer(serializers.Serializer):
    doctorId = serializers.IntegerField(source='doctor_id')
    hospitalId = serializers.IntegerField(source='hospital_id')
    date = serializers.DateField()
    time = serializers.CharField(max_length=5)
    type = serializers.CharField(required=False, max_length=50, default='consultation')
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    symptoms = serializers.CharField(required=False, allow_blank=True, default='')
    patientDetails = PatientDetailsSerializer(source='patient_details')

    def validate_time(self, v):
        return _validate_time(v)

    def validate_notes(self, v):
        return _clean(v)

    def validate_symptoms(self, v):
        return _clean(v)


class CreateAppointmentSerializer(serializers.Serializer):
    doctorId = serializers.IntegerField(source='doctor_id')
    date = serializers.DateField()
    time = serializers.CharField(max_length=5)
    patientId = serializers.IntegerField(source='patient_id', required=False, allow_null=True)
    patientDetails = PatientDetailsSerializer(source='patient_details', required=False)
    type = serializers.CharField(required=False, max_length=50, default='consultation')
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    symptoms = serializers.CharField(required=False, allow_blank=True, default='')
    confirm = serializers.BooleanField(required=False, default=False)

    def validate_time(self, v):
        return _validate_time(v)

    def validate_notes(self, v):
        return _clean(v)

    def validate_symptoms(self, v):
        return _clean(v)

    def validate(self, attrs):
        if attrs.get('patient_id') is None and not attrs.get('patient_details'):
            raise serializers.ValidationError({'patientId': 'Provide patientId or patientDetails.'})
        return attrs


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Appointment.STATUS_CHOICES)
    noShowReason = serializers.CharField(source='no_show_reason', required=False, allow_blank=True)

    def validate_noShowReason(self, v):
        return _clean(v)


class CheckInSerializer(serializers.Serializer):
    checkInTime = serializers.DateTimeField(source='check_in_time', required=False, allow_null=True)


class TreatmentOutcomeSerializer(serializers.Serializer):
    diagnosis = serializers.CharField(required=False, allow_blank=True)
    disease = serializers.CharField(required=False, allow_blank=True, max_length=255)
    treatmentOutcome = serializers.ChoiceField(source='treatment_outcome', choices=Appointment.OUTCOME_CHOICES,
                                               required=False)
    treatmentEndDate = serializers.DateField(source='treatment_end_date', required=False, allow_null=True)

    def validate_diagnosis(self, v):
        return _clean(v)

    def validate_disease(self, v):
        return _clean(v)


class FollowUpUpdateSerializer(serializers.Serializer):
    time = serializers.CharField(required=False, max_length=5)
    date = serializers.DateField(required=False)
    timeSlotConfirmed = serializers.BooleanField(source='time_slot_confirmed', required=False)
    reminderSent = serializers.BooleanField(source='reminder_sent', required=False)

    def validate_time(self, v):
        return _validate_time(v)


class AppointmentListQuerySerializer(serializers.Serializer):
    doctorId = serializers.IntegerField(source='doctor_id', required=False)
    hospitalId = serializers.IntegerField(source='hospital_id', required=False)
    patientId = serializers.IntegerField(source='patient_id', required=False)
    status = serializers.ChoiceField(choices=Appointment.STATUS_CHOICES, required=False)
    date = serializers.DateField(required=False)
    page = serializers.IntegerField(required=False, min_value=1)
    pageSize = serializers.IntegerField(source='page_size', required=False, min_value=1, max_value=100)


class FollowUpListQuerySerializer(AppointmentListQuerySerializer):
    needsTimeSlot = serializers.ChoiceField(source='needs_time_slot', choices=['true', 'false'], required=False)


class AvailableSlotsQuerySerializer(serializers.Serializer):
    doctorId = serializers.IntegerField(source='doctor_id')
    date = serializers.DateField()
