# emergencies/models.py
from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone

from algorithms.blood_compatibility import BLOOD_TYPES
from donors.validators import validate_indian_phone


class Emergency(models.Model):
    URGENCY_CRITICAL = 'critical'
    URGENCY_URGENT = 'urgent'
    URGENCY_STANDARD = 'standard'
    URGENCY_CHOICES = [
        (URGENCY_CRITICAL, 'Critical - Needed within hours'),
        (URGENCY_URGENT, 'Urgent - Within 24 Hours'),
        (URGENCY_STANDARD, 'Standard - Within a few days'),
    ]

    # How long each urgency stays on the board
    EXPIRY = {
        URGENCY_CRITICAL: timedelta(hours=24),
        URGENCY_URGENT: timedelta(days=3),
        URGENCY_STANDARD: timedelta(days=7),
    }

    STATUS_ACTIVE = 'active'
    STATUS_FULFILLED = 'fulfilled'
    STATUS_CANCELLED = 'cancelled'
    STATUS_EXPIRED = 'expired'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_FULFILLED, 'Fulfilled'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_EXPIRED, 'Expired'),
    ]

    BLOOD_GROUP_CHOICES = [(bg, bg) for bg in BLOOD_TYPES]

    blood_group = models.CharField(max_length=3, choices=BLOOD_GROUP_CHOICES, db_index=True)
    units_needed = models.PositiveIntegerField(default=1)
    hospital = models.CharField(max_length=200)
    city = models.CharField(max_length=100, db_index=True)
    contact_name = models.CharField(max_length=200)
    contact_phone = models.CharField(max_length=15, validators=[validate_indian_phone])
    urgency = models.CharField(max_length=10, choices=URGENCY_CHOICES, default=URGENCY_URGENT)
    notes = models.TextField(blank=True)
    patient_name = models.CharField(max_length=200, blank=True)

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    active = models.BooleanField(default=True, db_index=True)
    status_notes = models.TextField(blank=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='emergencies'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    expires_at = models.DateTimeField(null=True, blank=True)

    # Tracking
    view_count = models.PositiveIntegerField(default=0)
    response_count = models.PositiveIntegerField(default=0)
    notified_donors = models.ManyToManyField('donors.Donor', blank=True, related_name='emergency_notifications')

    def __str__(self):
        return f"{self.hospital} - {self.blood_group} ({self.urgency})"

    @classmethod
    def expiry_for(cls, urgency, now=None):
        now = now or timezone.now()
        return now + cls.EXPIRY.get(urgency, cls.EXPIRY[cls.URGENCY_STANDARD])

    @property
    def is_expired(self):
        return self.expires_at is not None and self.expires_at <= timezone.now()

    @property
    def hours_remaining(self):
        if self.expires_at is None:
            return None
        delta = self.expires_at - timezone.now()
        return max(0.0, delta.total_seconds() / 3600)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Emergency'
        verbose_name_plural = 'Emergencies'


class EmergencyResponse(models.Model):
    """A donor reacting to an emergency broadcast"""
    CLICKED = 'clicked'
    CALLED = 'called'
    MESSAGED = 'messaged'
    TYPE_CHOICES = [
        (CLICKED, 'Clicked'),
        (CALLED, 'Called'),
        (MESSAGED, 'Messaged'),
    ]

    emergency = models.ForeignKey(Emergency, on_delete=models.CASCADE, related_name='responses')
    donor = models.ForeignKey(
        'donors.Donor',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='emergency_responses'
    )
    response_type = models.CharField(max_length=10, choices=TYPE_CHOICES, default=CLICKED)
    timestamp = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.donor or 'Anonymous'} - {self.response_type}"

    class Meta:
        ordering = ['-timestamp']
