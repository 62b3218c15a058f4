# emergencies/signals.py
"""
Signals to automatically broadcast an emergency when it is created
"""
import logging

from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from emergencies.models import Emergency
from emergencies.tasks import broadcast_emergency

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Emergency)
def auto_broadcast_emergency(sender, instance, created, **kwargs):
    """
    Queue the donor broadcast for a new active emergency once the row is committed
    """
    if created and instance.active:
        emergency_id = instance.id
        transaction.on_commit(lambda: broadcast_emergency.delay(emergency_id))
        logger.info(f"Broadcast queued for emergency #{emergency_id}")
