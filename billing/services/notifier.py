"""
Queue refresh broadcasts over the Channels layer.

Cashier screens subscribe to the ``billing.queue`` group (see
``billing.realtime.consumers``) and reload the queue on every event.
"""
from __future__ import annotations

import logging
from typing import Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.utils import timezone

logger = logging.getLogger(__name__)

QUEUE_GROUP = 'billing.queue'


class QueueNotifier:
    """Sends ``billing.refresh`` events to the cashier queue group."""

    def __init__(self, channel_layer=None, group: str = QUEUE_GROUP):
        self.channel_layer = channel_layer
        self.group = group

    def queue_changed(self, *, reason: str, visit_id: Optional[int] = None,
                      billing_id: Optional[int] = None, payment_status: Optional[str] = None) -> None:
        if self.channel_layer is None:
            return
        event = {
            'type': 'billing.refresh',
            'reason': reason,
            'visitId': visit_id,
            'billingId': billing_id,
            'paymentStatus': payment_status,
            'ts': timezone.now().isoformat(),
        }
        async_to_sync(self.channel_layer.group_send)(self.group, event)
        logger.debug('queue refresh sent: %s visit=%s', reason, visit_id)


def default_notifier() -> QueueNotifier:
    """Notifier bound to the configured channel layer, if there is one."""
    return QueueNotifier(get_channel_layer())
