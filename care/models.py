"""
Database models for the clinic care backend.

These models capture the concepts the appointment lifecycle works on:
hospitals, user accounts with a role, doctor profiles, patients,
appointments, medical reports and the append-only activity log.
Reference fields always hold ids (foreign keys); related rows are
loaded explicitly with ``select_related`` where a view needs them.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models.functions import Lower
from django.utils import timezone


class Hospital(models.Model):
    """A tenant of the system. Staff, doctors and appointments belong to one."""
    name = models.CharField(max_length=255)
    address = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.id})"


class User(AbstractUser):
    """Custom user model with a role and optional hospital binding.

    Roles mirror the console roles: 'admin' sees every hospital, 'staff'
    and 'doctor' are bound to one hospital, 'patient' accounts are
    optional since a patient record may exist before any login.
    """
    ROLE_ADMIN = 'admin'
    ROLE_STAFF = 'staff'
    ROLE_DOCTOR = 'doctor'
    ROLE_PATIENT = 'patient'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_STAFF, 'Staff'),
        (ROLE_DOCTOR, 'Doctor'),
        (ROLE_PATIENT, 'Patient'),
    ]
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_PATIENT)
    hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='users', db_index=True
    )

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class Doctor(models.Model):
    """Doctor profile attached to a user account with role 'doctor'."""
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='doctor_profile')
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='doctors')
    specialization = models.CharField(max_length=255)
    is_available = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"Dr {self.user.get_full_name() or self.user.username} ({self.specialization})"


class Patient(models.Model):
    """A patient record, created lazily on first booking or first report.

    ``status`` and ``last_status_change_date`` always change together;
    ``treatment_days`` only ever grows (see
    :class:`care.services.synchronizer.PatientStatusSynchronizer`).
    """
    STATUS_ACTIVE = 'active'
    STATUS_INACTIVE = 'inactive'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_INACTIVE, 'Inactive'),
    ]
    GENDER_CHOICES = [
        ('male', 'Male'),
        ('female', 'Female'),
        ('other', 'Other'),
        ('not_specified', 'Not specified'),
    ]

    user = models.OneToOneField(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='patient_record'
    )
    name = models.CharField(max_length=255, db_index=True)
    email = models.EmailField(db_index=True)
    date_of_birth = models.DateField(null=True, blank=True)
    age = models.PositiveIntegerField(null=True, blank=True)
    gender = models.CharField(max_length=16, choices=GENDER_CHOICES, default='not_specified')
    phone = models.CharField(max_length=32, blank=True)
    blood_group = models.CharField(max_length=16, default='Not Specified')
    allergies = models.JSONField(default=list, blank=True)
    medical_history = models.JSONField(default=list, blank=True)
    emergency_contact = models.JSONField(default=dict, blank=True)
    # Home hospital: the first one set wins.
    hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='patients', db_index=True
    )
    primary_doctor = models.ForeignKey(
        Doctor, null=True, blank=True, on_delete=models.SET_NULL, related_name='primary_patients'
    )
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    treatment_days = models.PositiveIntegerField(default=0)
    last_status_change_date = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            # one record per e-mail address, case-insensitively
            models.UniqueConstraint(Lower('email'), name='uniq_patient_email_ci'),
        ]

    def __str__(self) -> str:
        return f"{self.name} <{self.email}> ({self.status})"


class Report(models.Model):
    """A medical report written for an appointment.

    Only the fields the appointment lifecycle needs are kept here;
    rendering reports is handled elsewhere.
    """
    TYPE_CHOICES = [
        ('diagnosis', 'Diagnosis'),
        ('prescription', 'Prescription'),
        ('lab', 'Lab'),
        ('general', 'General'),
    ]
    appointment = models.ForeignKey('Appointment', on_delete=models.CASCADE, related_name='reports')
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='reports')
    doctor = models.ForeignKey(Doctor, on_delete=models.CASCADE, related_name='reports')
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='reports')
    report_number = models.CharField(max_length=64, unique=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='general')
    diagnosis = models.TextField(blank=True)
    prescription = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    follow_up_date = models.DateField(null=True, blank=True)
    follow_up_appointment = models.ForeignKey(
        'Appointment', null=True, blank=True, on_delete=models.SET_NULL, related_name='+'
    )
    created_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='reports')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"Report #{self.report_number}"


class Appointment(models.Model):
    """A booked encounter between a patient and a doctor.

    Status transitions are driven by
    :class:`care.services.lifecycle.LifecycleEngine`; appointments are
    never deleted, cancellation is a status value.
    """
    STATUS_PENDING = 'pending'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_COMPLETED = 'completed'
    STATUS_NOT_APPEARED = 'not_appeared'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_NOT_APPEARED, 'Not appeared'),
    ]
    TERMINAL_STATUSES = (STATUS_CANCELLED, STATUS_COMPLETED, STATUS_NOT_APPEARED)

    OUTCOME_SUCCESSFUL = 'successful'
    OUTCOME_PARTIAL = 'partial'
    OUTCOME_UNSUCCESSFUL = 'unsuccessful'
    OUTCOME_ONGOING = 'ongoing'
    OUTCOME_CHOICES = [
        (OUTCOME_SUCCESSFUL, 'Successful'),
        (OUTCOME_PARTIAL, 'Partial'),
        (OUTCOME_UNSUCCESSFUL, 'Unsuccessful'),
        (OUTCOME_ONGOING, 'Ongoing'),
    ]

    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name='appointments')
    doctor = models.ForeignKey(Doctor, on_delete=models.PROTECT, related_name='appointments')
    hospital = models.ForeignKey(Hospital, on_delete=models.PROTECT, related_name='appointments')

    date = models.DateField()
    time = models.CharField(max_length=5, help_text="Slot start, HH:MM")
    type = models.CharField(max_length=50, default='consultation')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)

    symptoms = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    diagnosis = models.TextField(blank=True)
    disease = models.CharField(max_length=255, blank=True)
    treatment_outcome = models.CharField(max_length=20, choices=OUTCOME_CHOICES, default=OUTCOME_ONGOING)
    treatment_end_date = models.DateField(null=True, blank=True)
    no_show_reason = models.TextField(blank=True)

    check_in_time = models.DateTimeField(null=True, blank=True)
    consultation_start_time = models.DateTimeField(null=True, blank=True)

    # Follow-up linkage
    is_follow_up = models.BooleanField(default=False)
    needs_time_slot = models.BooleanField(default=False)
    time_slot_confirmed = models.BooleanField(default=False)
    reminder_sent = models.BooleanField(default=False)
    original_appointment = models.ForeignKey(
        'self', null=True, blank=True, on_delete=models.SET_NULL, related_name='follow_ups'
    )
    related_report = models.ForeignKey(
        Report, null=True, blank=True, on_delete=models.SET_NULL, related_name='spawned_appointments'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['doctor', 'date'], name='care_appoin_doctor__2f0c1e_idx'),
            models.Index(fields=['patient', 'status'], name='care_appoin_patient_8a1d47_idx'),
            models.Index(fields=['disease', 'treatment_outcome'], name='care_appoin_disease_5b7e92_idx'),
            models.Index(fields=['is_follow_up', 'needs_time_slot'], name='care_appoin_is_foll_c43a10_idx'),
            models.Index(fields=['status', 'date'], name='care_appoin_status_9e6b25_idx'),
        ]
        constraints = [
            # One live appointment per doctor slot. Follow-ups waiting for a
            # time carry a placeholder time and do not hold the slot.
            models.UniqueConstraint(
                fields=['doctor', 'date', 'time'],
                condition=~models.Q(status='cancelled') & models.Q(needs_time_slot=False),
                name='uniq_live_doctor_slot',
            ),
        ]

    def __str__(self) -> str:
        return f"Appointment {self.id} d={self.doctor_id} {self.date} {self.time} ({self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES


class Activity(models.Model):
    """Append-only audit entry describing one state transition."""
    ACTION_CHOICES = [
        ('appointment_created', 'appointment_created'),
        ('appointment_confirmed', 'appointment_confirmed'),
        ('appointment_cancelled', 'appointment_cancelled'),
        ('appointment_completed', 'appointment_completed'),
        ('appointment_updated', 'appointment_updated'),
        ('appointment_not_appeared', 'appointment_not_appeared'),
        ('update_patient_status', 'update_patient_status'),
        ('update_treatment', 'update_treatment'),
        ('patient_checked_in', 'patient_checked_in'),
        ('followup_scheduled', 'followup_scheduled'),
        ('followup_updated', 'followup_updated'),
        ('report_generated', 'report_generated'),
    ]
    SUBJECT_CHOICES = [
        ('appointment', 'appointment'),
        ('patient', 'patient'),
        ('report', 'report'),
    ]
    STATUS_CHOICES = [
        ('success', 'success'),
        ('warning', 'warning'),
        ('error', 'error'),
    ]
    ACTOR_ROLE_CHOICES = User.ROLE_CHOICES + [('system', 'System')]

    user = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='activities')
    actor_name = models.CharField(max_length=255, blank=True)
    actor_email = models.CharField(max_length=255, blank=True)
    actor_role = models.CharField(max_length=10, choices=ACTOR_ROLE_CHOICES, default='system')
    hospital = models.ForeignKey(Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='activities')
    patient = models.ForeignKey(Patient, null=True, blank=True, on_delete=models.SET_NULL, related_name='activities')
    action = models.CharField(max_length=32, choices=ACTION_CHOICES)
    subject = models.CharField(max_length=16, choices=SUBJECT_CHOICES)
    subject_id = models.CharField(max_length=64)
    description = models.CharField(max_length=255, blank=True)
    details = models.TextField(blank=True)
    status = models.CharField(max_length=8, choices=STATUS_CHOICES, default='success')
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='care_activi_action_1d2e8f_idx'),
            models.Index(fields=['subject', 'subject_id', 'created_at'], name='care_activi_subject_7c4b31_idx'),
            models.Index(fields=['hospital', 'created_at'], name='care_activi_hospita_e5a902_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.subject}={self.subject_id}@{self.created_at:%F %T}"
