from django.conf import settings
from django.core.cache import cache
from django.core.management.base import BaseCommand
from django.utils import timezone

from queueing.models import Counter
from queueing.realtime.broadcast import broadcast_counter_update
from queueing.services.queue import local_day
from queueing.services.stats import daily_stats_cache_key, get_daily_stats


class Command(BaseCommand):
    help = "Warm the daily stats cache and rebroadcast every active counter's display."

    def handle(self, *args, **options):
        now = timezone.now()
        day = local_day(now)
        cache.set(
            daily_stats_cache_key(day),
            {'ok': True, 'data': get_daily_stats(day=day)},
            settings.QUEUE_STATS_CACHE_SECONDS,
        )

        sent = 0
        counter_ids = Counter.objects.filter(status=Counter.STATUS_ACTIVE).order_by('id').values_list('id', flat=True)
        for counter_id in counter_ids:
            if broadcast_counter_update(counter_id):
                sent += 1

        self.stdout.write(self.style.SUCCESS(f"Refreshed daily stats and {sent} counter displays at {now}"))
