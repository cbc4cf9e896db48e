"""
Django admin registrations for the care models.

Appointments and patients are editable here for support work; the
activity log is read-only since it is append-only by contract.
"""

from django.contrib import admin

from .models import Activity, Appointment, Doctor, Hospital, Patient, Report, User


@admin.register(Hospital)
class HospitalAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'address', 'created_at')
    search_fields = ('id', 'name')


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'email', 'role', 'hospital', 'is_active', 'is_superuser')
    list_filter = ('role', 'hospital')
    search_fields = ('username', 'first_name', 'last_name', 'email')


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'hospital', 'specialization', 'is_available')
    list_filter = ('hospital', 'is_available')
    search_fields = ('user__username', 'user__first_name', 'user__last_name', 'specialization')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'email', 'status', 'treatment_days', 'last_status_change_date', 'hospital')
    list_filter = ('status', 'hospital')
    search_fields = ('name', 'email', 'phone')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'doctor', 'date', 'time', 'status', 'treatment_outcome', 'is_follow_up')
    list_filter = ('status', 'treatment_outcome', 'is_follow_up', 'needs_time_slot', 'hospital')
    search_fields = ('id', 'patient__name', 'patient__email', 'disease')
    raw_id_fields = ('patient', 'doctor', 'original_appointment', 'related_report')


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ('report_number', 'type', 'patient', 'doctor', 'follow_up_date', 'created_at')
    list_filter = ('type', 'hospital')
    search_fields = ('report_number', 'patient__name')
    raw_id_fields = ('appointment', 'patient', 'doctor', 'follow_up_appointment')


@admin.register(Activity)
class ActivityAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'action', 'subject', 'subject_id', 'actor_name', 'actor_role', 'status')
    list_filter = ('action', 'subject', 'status', 'actor_role')
    search_fields = ('subject_id', 'actor_name', 'actor_email', 'description')

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
