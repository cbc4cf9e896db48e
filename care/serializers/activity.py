from rest_framework import serializers

from care.models import Activity


class ActivityListQuerySerializer(serializers.Serializer):
    hospitalId = serializers.IntegerField(source='hospital_id', required=False)
    patientId = serializers.IntegerField(source='patient_id', required=False)
    action = serializers.ChoiceField(choices=Activity.ACTION_CHOICES, required=False)
    subject = serializers.ChoiceField(choices=Activity.SUBJECT_CHOICES, required=False)
    status = serializers.ChoiceField(choices=Activity.STATUS_CHOICES, required=False)
    dateFrom = serializers.DateField(source='date_from', required=False)
    dateTo = serializers.DateField(source='date_to', required=False)
    q = serializers.CharField(required=False, allow_blank=True, max_length=100)
    page = serializers.IntegerField(required=False, min_value=1)
    pageSize = serializers.IntegerField(source='page_size', required=False, min_value=1, max_value=100)
