from datetime import timedelta

import pytest
from django.utils import timezone

from queueing.models import Token
from queueing.services.estimator import average_wait_minutes, counter_backlog, estimate_counter_load

pytestmark = pytest.mark.django_db


def test_idle_counter_scores_zero_even_with_slow_history(make_counter, make_patient, make_token):
    counter = make_counter('P1')
    p = make_patient()
    make_token(counter, p, Token.STATUS_COMPLETED, actual_wait_time=90)
    assert counter_backlog(counter) == 0
    assert estimate_counter_load(counter) == 0


def test_score_is_average_wait_times_backlog(make_counter, make_patient, make_token):
    # P1 idle with 10 minute history, P2 with two pending and 20 minute history
    p1, p2 = make_counter('P1'), make_counter('P2')
    pat = make_patient()
    make_token(p1, pat, Token.STATUS_COMPLETED, actual_wait_time=10)
    make_token(p2, pat, Token.STATUS_COMPLETED, actual_wait_time=20)
    make_token(p2, pat, Token.STATUS_WAITING)
    make_token(p2, pat, Token.STATUS_CALLED)

    assert estimate_counter_load(p1) == 0
    assert estimate_counter_load(p2) == 40


def test_average_falls_back_to_global_then_default(make_counter, make_patient, make_token):
    busy, fresh = make_counter('Busy'), make_counter('Fresh')
    pat = make_patient()
    assert average_wait_minutes(fresh) == 15.0

    make_token(busy, pat, Token.STATUS_COMPLETED, actual_wait_time=6)
    make_token(busy, pat, Token.STATUS_COMPLETED, actual_wait_time=12)
    assert average_wait_minutes(busy) == 9.0
    # No completions of its own: the facility-wide average applies
    assert average_wait_minutes(fresh) == 9.0
    make_token(fresh, pat, Token.STATUS_WAITING)
    assert estimate_counter_load(fresh) == 9.0


def test_only_todays_tokens_count(make_counter, make_patient, make_token):
    counter = make_counter('P1')
    pat = make_patient()
    yesterday = timezone.now() - timedelta(days=1)
    make_token(counter, pat, Token.STATUS_WAITING, created_at=yesterday)
    make_token(counter, pat, Token.STATUS_COMPLETED, created_at=yesterday, actual_wait_time=50)

    assert counter_backlog(counter) == 0
    assert average_wait_minutes(counter) == 15.0
    assert estimate_counter_load(counter) == 0


def test_cancelled_and_completed_are_not_backlog(make_counter, make_patient, make_token):
    counter = make_counter('P1')
    pat = make_patient()
    make_token(counter, pat, Token.STATUS_CANCELLED)
    make_token(counter, pat, Token.STATUS_COMPLETED, actual_wait_time=5)
    make_token(counter, pat, Token.STATUS_WAITING)
    assert counter_backlog(counter) == 1
    assert estimate_counter_load(counter) == 5.0
