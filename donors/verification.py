# donors/verification.py
"""
Donor Verification
Phone OTP, document submission and admin approval
"""
import logging
import secrets
from datetime import timedelta

from django.contrib.auth.hashers import check_password, make_password
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from donors.models import Donor, DonorVerification

logger = logging.getLogger(__name__)

OTP_LENGTH = 6
OTP_TTL_MINUTES = 10
MAX_OTP_ATTEMPTS = 5

BADGES = {
    DonorVerification.LEVEL_FULL: {'label': 'Verified', 'icon': 'BadgeCheck',
                                   'description': 'Identity verified by admin'},
    DonorVerification.LEVEL_DOCUMENT: {'label': 'Pending Review', 'icon': 'FileCheck',
                                       'description': 'Documents submitted, awaiting review'},
    DonorVerification.LEVEL_PHONE: {'label': 'Phone Verified', 'icon': 'Phone',
                                    'description': 'Phone number verified'},
    DonorVerification.LEVEL_NONE: {'label': 'Unverified', 'icon': 'AlertCircle',
                                   'description': 'Not yet verified'},
}


class VerificationError(Exception):
    """A verification step was attempted out of order or with bad input."""


def generate_otp():
    return ''.join(secrets.choice('0123456789') for _ in range(OTP_LENGTH))


def get_verification_status(donor):
    verification = DonorVerification.objects.filter(donor=donor).first()
    if verification is None:
        return {
            'level': DonorVerification.LEVEL_NONE,
            'phone_verified': False,
            'document_verified': False,
            'admin_verified': False,
            'status': None,
        }

    return {
        'level': verification.level,
        'phone_verified': verification.phone_verified,
        'document_verified': verification.document_verified,
        'admin_verified': verification.admin_verified,
        'status': verification.status or None,
        'verified_at': verification.verified_at,
        'verified_by': verification.verified_by_id,
        'phone': verification.phone,
        'document_url': verification.document_url,
    }


def _national_number(phone):
    """Last 10 digits, so +91 / 0 prefixed forms compare equal"""
    digits = ''.join(ch for ch in str(phone or '') if ch.isdigit())
    return digits[-10:]


def start_phone_verification(donor, phone_number, now=None):
    """
    Issue a fresh OTP for the donor's own phone number.

    Only a hash of the code is stored. SMS delivery is out of scope, so the
    code is returned to the caller and logged at debug level.

    Raises:
        VerificationError: the number is not the donor's phone
    """
    if _national_number(phone_number) != _national_number(donor.phone):
        raise VerificationError("Phone number does not match the donor's phone")

    now = now or timezone.now()
    otp = generate_otp()

    DonorVerification.objects.update_or_create(
        donor=donor,
        defaults={
            'phone': donor.phone,
            'otp_hash': make_password(otp),
            'otp_expires_at': now + timedelta(minutes=OTP_TTL_MINUTES),
            'otp_attempts': 0,
            'phone_verified': False,
        },
    )
    logger.debug(f"[DEV] OTP for donor #{donor.id}: {otp}")
    return otp


def verify_phone_otp(donor, otp, now=None):
    """
    Raises:
        VerificationError: not started, expired, too many attempts, wrong
            code, or the donor's phone changed since the code was issued
    """
    now = now or timezone.now()
    verification = DonorVerification.objects.filter(donor=donor).first()
    if verification is None or not verification.otp_hash:
        raise VerificationError("Verification not started")

    if verification.otp_expires_at and now > verification.otp_expires_at:
        raise VerificationError("OTP expired. Please request a new one.")

    if verification.otp_attempts >= MAX_OTP_ATTEMPTS:
        raise VerificationError("Too many attempts. Please request a new OTP.")

    if _national_number(verification.phone) != _national_number(donor.phone):
        raise VerificationError("Phone number changed. Please request a new OTP.")

    if not check_password(str(otp), verification.otp_hash):
        DonorVerification.objects.filter(pk=verification.pk).update(otp_attempts=F('otp_attempts') + 1)
        logger.warning(f"Invalid OTP attempt for donor #{donor.id}")
        raise VerificationError("Invalid OTP")

    with transaction.atomic():
        verification.phone_verified = True
        verification.phone_verified_at = now
        verification.otp_hash = ''
        verification.otp_expires_at = None
        verification.otp_attempts = 0
        verification.save()

        Donor.objects.filter(pk=donor.pk).update(phone_verified=True, updated_at=now)

    donor.refresh_from_db()
    logger.info(f"Phone verified for donor #{donor.id}")
    return verification


def submit_document(donor, document_url, document_type):
    verification, _ = DonorVerification.objects.update_or_create(
        donor=donor,
        defaults={
            'document_url': document_url,
            'document_type': document_type,
            'document_submitted_at': timezone.now(),
            'document_verified': False,
            'status': DonorVerification.STATUS_PENDING,
        },
    )
    logger.info(f"Document submitted for donor #{donor.id} ({document_type})")
    return verification


def process_verification(donor, admin_user, approved, notes=''):
    """
    Admin decision on a submitted verification; approval verifies the donor.

    Raises:
        VerificationError: nothing was submitted for this donor
    """
    verification = DonorVerification.objects.filter(donor=donor).first()
    if verification is None:
        raise VerificationError("Verification not started")

    now = timezone.now()
    with transaction.atomic():
        verification.status = (
            DonorVerification.STATUS_APPROVED if approved else DonorVerification.STATUS_REJECTED
        )
        verification.admin_verified = approved
        verification.document_verified = approved
        verification.verified_at = now
        verification.verified_by = admin_user
        verification.admin_notes = notes
        verification.save()

        donor.is_verified = approved
        donor.verified_at = now if approved else None
        donor.save(update_fields=['is_verified', 'verified_at', 'updated_at'])

    logger.info(f"Verification for donor #{donor.id} {'approved' if approved else 'rejected'}")
    return verification


def get_pending_verifications():
    return (
        DonorVerification.objects
        .filter(status=DonorVerification.STATUS_PENDING)
        .select_related('donor')
        .order_by('document_submitted_at')
    )


def get_verification_badge_info(level):
    return BADGES.get(level, BADGES[DonorVerification.LEVEL_NONE])
