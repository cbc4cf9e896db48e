"""
URL mappings for the care API.

Trailing slashes are deliberately omitted; ``APPEND_SLASH`` is off.
"""
from django.urls import path, include

from .auth_views import login_view, jwt_refresh_view, jwt_logout_view
from .views import activities, appointments, health, patients, reports

urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh_view'),
    path('api/auth/logout', jwt_logout_view, name='jwt_logout_view'),
    # Appointments
    path('api/appointments', appointments.appointments, name='appointments'),
    path('api/appointments/create', appointments.create_appointment, name='appointment_create'),
    path('api/appointments/available-slots', appointments.available_slots, name='appointment_available_slots'),
    path('api/appointments/follow-ups', appointments.follow_ups, name='appointment_follow_ups'),
    path('api/appointments/<int:pk>', appointments.appointment_detail, name='appointment_detail'),
    path('api/appointments/<int:pk>/status', appointments.update_status, name='appointment_status'),
    path('api/appointments/<int:pk>/check-in', appointments.check_in, name='appointment_check_in'),
    path('api/appointments/<int:pk>/treatment-outcome', appointments.treatment_outcome,
         name='appointment_treatment_outcome'),
    path('api/appointments/<int:pk>/follow-up', appointments.update_follow_up, name='appointment_follow_up'),
    # Reports
    path('api/reports', reports.reports, name='reports'),
    # Patients
    path('api/patients/<int:pk>', patients.patient_detail, name='patient_detail'),
    # Activity log
    path('api/activities', activities.activities, name='activities'),
]
