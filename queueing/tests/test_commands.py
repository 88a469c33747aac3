from io import StringIO

import pytest
from django.core.cache import cache
from django.core.management import call_command
from django.utils import timezone

from queueing.models import Counter, CounterCategory, Patient, Token, User
from queueing.services.stats import daily_stats_cache_key

pytestmark = pytest.mark.django_db


def test_populate_data_is_idempotent():
    out = StringIO()
    call_command('populate_data', stdout=out)
    call_command('populate_data', stdout=out)
    assert set(CounterCategory.objects.values_list('name', flat=True)) == {'Registration', 'Pharmacy'}
    assert Counter.objects.count() == 3
    assert Counter.objects.get(name='Pharmacy Counter 1').location == 'Building C, 1st Floor'
    assert User.objects.get(username='pharmacist').counter.name == 'Pharmacy Counter 1'
    assert Patient.objects.count() == 5
    assert 'Done' in out.getvalue()


def test_populate_data_can_route_demo_arrivals():
    call_command('populate_data', '--tokens', '4', stdout=StringIO())
    numbers = sorted(Token.objects.values_list('token_number', flat=True))
    assert numbers == [1, 2, 3, 4]
    # Registration has two desks, so its two arrivals are spread out
    reg_counters = set(Token.objects.filter(counter__category__name='Registration').values_list('counter_id', flat=True))
    assert len(reg_counters) == 2


def test_refresh_displays(broadcasts):
    call_command('populate_data', stdout=StringIO())
    Counter.objects.filter(name='Registration Desk 2').update(status=Counter.STATUS_INACTIVE)
    out = StringIO()
    call_command('refresh_displays', stdout=out)

    assert cache.get(daily_stats_cache_key(timezone.localdate()))['data']['totalTokens'] == 0
    assert len(broadcasts) == 2
    assert {event['data']['counterName'] for _, event in broadcasts} == {'Registration Desk 1', 'Pharmacy Counter 1'}
    assert '2 counter displays' in out.getvalue()
