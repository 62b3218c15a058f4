# donors/signals.py
"""
Roster change notifications.

Any code that needs to react to donors being created, updated, deleted or
toggled connects to donor_roster_changed instead of polling the table.
Receivers get the donor and an action string.
"""
from django.dispatch import Signal

CREATED = 'created'
UPDATED = 'updated'
DELETED = 'deleted'
AVAILABILITY = 'availability'
DONATION = 'donation'

donor_roster_changed = Signal()
