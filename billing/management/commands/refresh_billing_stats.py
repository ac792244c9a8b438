from django.conf import settings
from django.core.cache import cache
from django.core.management.base import BaseCommand
from django.utils import timezone

from billing.services.notifier import default_notifier
from billing.services.reports import billing_statistics
from billing.views.billing import STATS_CACHE_KEY


class Command(BaseCommand):
    help = "Warm the billing statistics cache and tell cashier screens to reload the queue."

    def handle(self, *args, **options):
        now = timezone.now()
        payload = {'ok': True, 'data': billing_statistics()}
        cache.set(STATS_CACHE_KEY, payload, settings.BILLING_STATS_CACHE_SECONDS)

        default_notifier().queue_changed(reason='stats_refresh')

        self.stdout.write(self.style.SUCCESS(
            f"Refreshed {STATS_CACHE_KEY} at {now}: {payload['data']['totalBillings']} billings"
        ))
