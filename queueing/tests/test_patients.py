import pytest

from queueing.exceptions import InvalidRequest, NotFound
from queueing.models import NotificationSubscription, Token
from queueing.services.patients import patient_tokens, save_subscription, verify_patient

from .helpers import at

pytestmark = pytest.mark.django_db

SUBSCRIPTION = {'endpoint': 'https://push.example.test/abc', 'keys': {'p256dh': 'x', 'auth': 'y'}}


def test_save_subscription_upserts(make_patient):
    a, b = make_patient('A'), make_patient('B')
    save_subscription([a.id, b.id], SUBSCRIPTION)
    assert NotificationSubscription.objects.count() == 2

    renewed = {**SUBSCRIPTION, 'endpoint': 'https://push.example.test/new'}
    save_subscription([a.id], renewed)
    assert NotificationSubscription.objects.count() == 2
    assert NotificationSubscription.objects.get(patient=a).subscription['endpoint'].endswith('/new')


def test_save_subscription_rejects_bad_input(make_patient):
    a = make_patient()
    with pytest.raises(InvalidRequest):
        save_subscription([], SUBSCRIPTION)
    with pytest.raises(InvalidRequest):
        save_subscription([a.id], {'keys': {}})
    with pytest.raises(NotFound):
        save_subscription([a.id, 31337], SUBSCRIPTION)
    assert not NotificationSubscription.objects.exists()


def test_verify_patient_ignores_formatting(make_patient):
    p = make_patient(phone='98765 43210')
    assert verify_patient(p.id, '+91 9876543210')
    assert verify_patient(p.id, '9876543210')
    assert not verify_patient(p.id, '9876543211')
    assert not verify_patient(p.id, '')
    assert not verify_patient(424242, '9876543210')
    assert not verify_patient(make_patient(phone='').id, '9876543210')


def test_patient_tokens_report_people_ahead(make_counter, make_patient, make_token):
    counter = make_counter('P1')
    me, other = make_patient('Me'), make_patient('Other')
    make_token(counter, other, created_at=at(8))
    make_token(counter, other, Token.STATUS_CALLED, created_at=at(7))
    make_token(counter, other, priority=Token.PRIORITY_URGENT, created_at=at(9))
    mine = make_token(counter, me, created_at=at(8, 30))
    make_token(counter, other, created_at=at(8, 45))
    old = make_token(counter, me, Token.STATUS_COMPLETED, created_at=at(6))

    tokens = patient_tokens(me.id)
    assert [t['id'] for t in tokens] == [mine.id, old.id]
    assert tokens[0]['peopleAhead'] == 2
    assert tokens[1]['peopleAhead'] == 0

    with pytest.raises(NotFound):
        patient_tokens(424242)
