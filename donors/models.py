from django.db import models, transaction
from django.db.models import F
from django.conf import settings
from django.utils import timezone

from algorithms.blood_compatibility import BLOOD_TYPES
from algorithms.constants import ELITE_DONATION_THRESHOLD
from algorithms.donor_status import get_donor_status
from donors.validators import validate_indian_phone


# ---------------------------
# Donor
# ---------------------------
class Donor(models.Model):
    BLOOD_GROUP_CHOICES = [(bg, bg) for bg in BLOOD_TYPES]

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='donor_profile'
    )

    name = models.CharField(max_length=200)
    blood_group = models.CharField(max_length=3, choices=BLOOD_GROUP_CHOICES, db_index=True)
    phone = models.CharField(max_length=15, validators=[validate_indian_phone], db_index=True)
    whatsapp = models.CharField(max_length=15, blank=True)
    city = models.CharField(max_length=100, db_index=True)

    # Geolocation (optional)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)

    # Donation tracking
    donation_count = models.PositiveIntegerField(default=0)
    last_donation_date = models.DateField(null=True, blank=True)
    last_active_at = models.DateTimeField(null=True, blank=True)
    is_available = models.BooleanField(default=True)

    # Verification
    is_verified = models.BooleanField(default=False)
    phone_verified = models.BooleanField(default=False)
    verified_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def is_elite_donor(self) -> bool:
        return self.donation_count > ELITE_DONATION_THRESHOLD

    @property
    def status(self):
        return get_donor_status(self)

    @property
    def can_donate(self) -> bool:
        return self.status.can_donate

    def log_donation(self, donated_on=None, units=1, notes=''):
        """
        Record a completed donation. donation_count only ever goes up.
        """
        donated_on = donated_on or timezone.localdate()
        with transaction.atomic():
            Donor.objects.filter(pk=self.pk).update(
                donation_count=F('donation_count') + 1,
                last_donation_date=donated_on,
                last_active_at=timezone.now(),
                updated_at=timezone.now(),
            )
            entry = DonationHistory.objects.create(
                donor=self,
                date_donated=donated_on,
                units_donated=units,
                notes=notes,
            )
        self.refresh_from_db()
        return entry

    def touch(self):
        """Mark the donor as active now"""
        self.last_active_at = timezone.now()
        self.save(update_fields=['last_active_at', 'updated_at'])

    def __str__(self):
        return f"{self.name} ({self.blood_group})"

    class Meta:
        verbose_name = "Donor"
        verbose_name_plural = "Donors"
        ordering = ['-created_at']


class DonationHistory(models.Model):
    donor = models.ForeignKey(
        Donor,
        on_delete=models.CASCADE,
        related_name='donation_history'
    )
    emergency = models.ForeignKey(
        'emergencies.Emergency',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='donations'
    )

    date_donated = models.DateField()
    units_donated = models.PositiveIntegerField(default=1)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.donor.name} | {self.date_donated}"

    class Meta:
        ordering = ['-date_donated']
        verbose_name = "Donation History"
        verbose_name_plural = "Donation Histories"


class DonorVerification(models.Model):
    LEVEL_NONE = 'none'
    LEVEL_PHONE = 'phone'         # Phone verified
    LEVEL_DOCUMENT = 'document'   # ID document uploaded
    LEVEL_FULL = 'full'           # Admin verified

    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    donor = models.OneToOneField(Donor, on_delete=models.CASCADE, related_name='verification')

    phone = models.CharField(max_length=15, blank=True)
    otp_hash = models.CharField(max_length=128, blank=True)
    otp_expires_at = models.DateTimeField(null=True, blank=True)
    otp_attempts = models.PositiveSmallIntegerField(default=0)
    phone_verified = models.BooleanField(default=False)
    phone_verified_at = models.DateTimeField(null=True, blank=True)

    document_url = models.URLField(blank=True)
    document_type = models.CharField(max_length=50, blank=True)
    document_submitted_at = models.DateTimeField(null=True, blank=True)
    document_verified = models.BooleanField(default=False)

    admin_verified = models.BooleanField(default=False)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, blank=True)
    verified_at = models.DateTimeField(null=True, blank=True)
    verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+'
    )
    admin_notes = models.TextField(blank=True)

    updated_at = models.DateTimeField(auto_now=True)

    @property
    def level(self):
        if self.admin_verified:
            return self.LEVEL_FULL
        # Submitted and awaiting review counts as document level
        if self.document_verified or (self.document_url and self.status == self.STATUS_PENDING):
            return self.LEVEL_DOCUMENT
        if self.phone_verified:
            return self.LEVEL_PHONE
        return self.LEVEL_NONE

    def __str__(self):
        return f"Verification → {self.donor.name} ({self.level})"
