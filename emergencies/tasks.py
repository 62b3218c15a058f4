# emergencies/tasks.py
"""
Celery tasks for emergency broadcasts
"""
import logging
import smtplib

from celery import shared_task
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import send_mail

from emergencies import services
from emergencies.models import Emergency

logger = logging.getLogger(__name__)


@shared_task
def broadcast_emergency(emergency_id):
    """
    E-mail every matched donor who can donate under the emergency minimum
    and has an account e-mail. Called right after an Emergency is created.
    """
    try:
        emergency = Emergency.objects.get(id=emergency_id)
    except Emergency.DoesNotExist:
        return f"Emergency {emergency_id} not found"

    if not emergency.active:
        return f"Emergency {emergency_id} is {emergency.status}"

    matches = [m for m in services.get_matching_donors(emergency) if m.status.can_donate]
    if not matches:
        notify_admin_no_donors(emergency)
        return f"No donors available for emergency {emergency_id}"

    notified = []
    for match in matches:
        donor = match.donor
        if send_donor_email(emergency, donor):
            notified.append(donor)

    emergency.notified_donors.add(*notified)
    logger.info(f"Emergency #{emergency.id}: notified {len(notified)} of {len(matches)} matched donors")
    return f"Notified {len(notified)} donors for emergency {emergency_id}"


@shared_task
def expire_emergencies():
    """Periodic sweep closing emergencies past their expiry"""
    expired = services.expire_stale_emergencies()
    return f"Expired {expired} emergencies"


def send_donor_email(emergency, donor):
    """Send one broadcast e-mail. Returns True when it went out."""
    email = donor.user.email if donor.user_id else None
    if not email:
        return False

    message = f"""
🔴 URGENT BLOOD NEEDED

Hospital: {emergency.hospital}
City: {emergency.city}
Blood Group: {emergency.blood_group}
Units: {emergency.units_needed}
Urgency: {emergency.urgency.upper()}

Contact {emergency.contact_name}: {emergency.contact_phone}

View the request: {settings.SITE_URL}/emergencies/{emergency.id}/

Thank you for being a lifesaver!
LifeFlow
    """.strip()

    try:
        send_mail(
            subject=f"🔴 URGENT: {emergency.blood_group} blood needed at {emergency.hospital}",
            message=message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[email],
            fail_silently=False,
        )
    except (smtplib.SMTPException, OSError) as e:
        logger.warning(f"Emergency #{emergency.id}: e-mail to donor #{donor.id} failed: {e}")
        return False
    return True


def notify_admin_no_donors(emergency):
    """Notify admins when nobody matched an emergency"""
    User = get_user_model()
    admins = User.objects.filter(is_superuser=True, is_active=True)

    message = f"""
⚠️ NO DONORS AVAILABLE

Emergency ID: #{emergency.id}
Hospital: {emergency.hospital}
City: {emergency.city}
Blood Group: {emergency.blood_group}

No compatible, available donors could be notified.

ACTION REQUIRED: Please find donors manually.

View: {settings.SITE_URL}/admin/emergencies/emergency/{emergency.id}/change/
    """.strip()

    admin_emails = [admin.email for admin in admins if admin.email]
    if admin_emails:
        send_mail(
            subject=f"⚠️ URGENT - No Donors Available - Emergency #{emergency.id}",
            message=message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=admin_emails,
            fail_silently=True,
        )
    logger.warning(f"Emergency #{emergency.id}: no donors available")
