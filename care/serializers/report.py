from rest_framework import serializers

from care.models import Report


class ReportCreateSerializer(serializers.Serializer):
    appointmentId = serializers.IntegerField(source='appointment_id')
    type = serializers.ChoiceField(choices=Report.TYPE_CHOICES, required=False, default='general')
    diagnosis = serializers.CharField(required=False, allow_blank=True, default='')
    prescription = serializers.CharField(required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    followUpDate = serializers.DateField(source='follow_up_date', required=False, allow_null=True)
