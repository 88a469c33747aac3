"""
Integration tests for the queue HTTP API.

These exercise the endpoints end to end through DRF's APIClient:
authentication, the tagged success and error bodies, the token
lifecycle and the public patient and display endpoints.
"""
from datetime import timedelta

from django.core.cache import cache
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from ..models import Counter, CounterCategory, Department, NotificationSubscription, Patient, Token, User
from ..services.stats import daily_stats_cache_key


class QueueAPITests(APITestCase):
    def setUp(self) -> None:
        self.department = Department.objects.create(name='Pharmacy')
        self.category = CounterCategory.objects.create(name='Pharmacy', department=self.department)
        self.empty_category = CounterCategory.objects.create(name='Radiology')
        self.pharmacist = User.objects.create_user(username='pharm1', password='P@ssw0rd1', role='pharmacist')
        now = timezone.now()
        self.counter1 = Counter.objects.create(
            name='Pharmacy Counter 1', category=self.category, assigned_user=self.pharmacist,
            created_at=now - timedelta(days=2),
        )
        self.counter2 = Counter.objects.create(
            name='Pharmacy Counter 2', category=self.category, created_at=now - timedelta(days=1),
        )
        self.patient = Patient.objects.create(name='Asha Verma', phone='9876543210')
        self.other = Patient.objects.create(name='Rahul Nair', phone='9876501234')

    def authenticate(self, user: User) -> APIClient:
        """Return an authenticated APIClient for the given user."""
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    def issue(self, client, patient=None, **extra):
        payload = {'patientId': (patient or self.patient).id, 'categoryId': self.category.id, **extra}
        return client.post(reverse('token-create'), payload, format='json')

    def test_staff_endpoints_require_authentication(self):
        response = APIClient().post(reverse('token-create'), {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['ok'])
        self.assertEqual(response.data['error']['code'], 'not_authenticated')

    def test_staff_endpoints_reject_roles_outside_staff(self):
        visitor = User.objects.create_user(username='visitor1', password='P@ssw0rd1', role='visitor')
        client = self.authenticate(visitor)
        response = self.issue(client)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error']['code'], 'permission_denied')
        self.assertEqual(client.get(reverse('stats-daily')).status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(Token.objects.count(), 0)

    def test_issue_token(self):
        client = self.authenticate(self.pharmacist)
        response = self.issue(client, priority='URGENT', notes='<b>wheelchair</b>')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data['data']
        self.assertTrue(response.data['ok'])
        self.assertEqual(data['tokenNumber'], 1)
        self.assertEqual(data['status'], 'WAITING')
        self.assertEqual(data['priority'], 'URGENT')
        self.assertEqual(data['counterId'], self.counter1.id)
        self.assertEqual(data['estimatedWaitTime'], 15)
        self.assertEqual(data['notes'], 'wheelchair')

        second = self.issue(client, self.other).data['data']
        self.assertEqual(second['tokenNumber'], 2)
        self.assertEqual(second['counterId'], self.counter2.id)

    def test_issue_errors_are_tagged(self):
        client = self.authenticate(self.pharmacist)
        cases = [
            ({'patientId': 999, 'categoryId': self.category.id}, 404, 'not_found'),
            ({'patientId': self.patient.id, 'categoryId': self.empty_category.id}, 409, 'no_available_counter'),
            ({'patientId': self.patient.id, 'categoryId': self.category.id, 'priority': 'VIP'}, 400, 'invalid_request'),
            ({'categoryId': self.category.id}, 400, 'invalid_request'),
        ]
        for payload, code, tag in cases:
            response = client.post(reverse('token-create'), payload, format='json')
            self.assertEqual(response.status_code, code, payload)
            self.assertEqual(set(response.data), {'ok', 'error'})
            self.assertFalse(response.data['ok'])
            self.assertEqual(response.data['error']['code'], tag)
        self.assertEqual(Token.objects.count(), 0)

    def test_token_lifecycle(self):
        client = self.authenticate(self.pharmacist)
        token_id = self.issue(client).data['data']['id']

        called = client.post(reverse('queue-call-next'), {'counterId': self.counter1.id}, format='json')
        self.assertEqual(called.status_code, status.HTTP_200_OK)
        self.assertEqual(called.data['data']['id'], token_id)
        self.assertEqual(called.data['data']['status'], 'CALLED')
        self.assertEqual(called.data['data']['actualWaitTime'], 0)

        done = client.post(reverse('token-status', args=[token_id]), {'status': 'COMPLETED'}, format='json')
        self.assertEqual(done.status_code, status.HTTP_200_OK)
        self.assertEqual(done.data['data']['status'], 'COMPLETED')

        again = client.post(reverse('token-cancel', args=[token_id]), {}, format='json')
        self.assertEqual(again.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(again.data['error']['code'], 'invalid_transition')

        detail = client.get(reverse('token-detail', args=[token_id]))
        self.assertEqual(
            [(h['from'], h['to']) for h in detail.data['data']['transitionHistory']],
            [(None, 'WAITING'), ('WAITING', 'CALLED'), ('CALLED', 'COMPLETED')],
        )
        self.assertEqual(detail.data['data']['transitionHistory'][1]['operator'], 'pharm1')

    def test_call_next_by_staff_and_empty_queue(self):
        client = self.authenticate(self.pharmacist)
        empty = client.post(reverse('queue-call-next'), {'staffId': self.pharmacist.id}, format='json')
        self.assertEqual(empty.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(empty.data['error']['code'], 'not_found')

        self.issue(client)
        called = client.post(reverse('queue-call-next'), {'staffId': self.pharmacist.id}, format='json')
        self.assertEqual(called.status_code, status.HTTP_200_OK)

        missing = client.post(reverse('queue-call-next'), {}, format='json')
        self.assertEqual(missing.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(missing.data['error']['code'], 'invalid_request')

    def test_unknown_token(self):
        client = self.authenticate(self.pharmacist)
        response = client.get(reverse('token-detail', args=[4242]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error']['code'], 'not_found')

    def test_daily_stats_are_cached_and_refreshed(self):
        client = self.authenticate(self.pharmacist)
        first = client.get(reverse('stats-daily'))
        self.assertEqual(first.data['data']['totalTokens'], 0)
        self.assertIsNotNone(cache.get(daily_stats_cache_key(timezone.localdate())))

        self.issue(client)
        second = client.get(reverse('stats-daily'))
        self.assertEqual(second.data['data']['totalTokens'], 1)
        self.assertEqual(second.data['data']['byPriority'], {'NORMAL': 1, 'URGENT': 0})

    def test_counter_views(self):
        client = self.authenticate(self.pharmacist)
        self.issue(client)
        self.issue(client, self.other)
        self.issue(client)

        waiting = client.get(reverse('counter-waiting', args=[self.counter1.id]))
        self.assertEqual([t['tokenNumber'] for t in waiting.data['data']], [1, 3])

        details = client.get(reverse('counter-details', args=[self.counter1.id]))
        self.assertIsNone(details.data['data']['current'])
        self.assertEqual(len(details.data['data']['next']), 2)

        load = client.get(reverse('category-load', args=[self.category.id]))
        self.assertEqual([c['backlog'] for c in load.data['data']], [2, 1])

    def test_display_is_public(self):
        self.issue(self.authenticate(self.pharmacist))
        response = APIClient().get(reverse('counter-display', args=[self.counter1.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['counterName'], 'Pharmacy Counter 1')
        self.assertEqual(response.data['data']['next'], '1')

        missing = APIClient().get(reverse('counter-display', args=[999]))
        self.assertEqual(missing.status_code, status.HTTP_404_NOT_FOUND)

    def test_save_subscription_is_public(self):
        subscription = {'endpoint': 'https://push.example.test/1', 'keys': {'p256dh': 'a', 'auth': 'b'}}
        response = APIClient().post(
            reverse('save-subscription'),
            {'userIds': [self.patient.id, self.other.id], 'subscription': subscription},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['saved'], 2)
        self.assertEqual(NotificationSubscription.objects.count(), 2)

        empty = APIClient().post(reverse('save-subscription'), {'userIds': [], 'subscription': subscription}, format='json')
        self.assertEqual(empty.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(empty.data['error']['code'], 'invalid_request')

    def test_patient_tokens_require_matching_phone(self):
        client = self.authenticate(self.pharmacist)
        self.issue(client, self.other)
        self.issue(client, self.other)
        self.issue(client)

        anon = APIClient()
        wrong = anon.post(reverse('patient-tokens'), {'patientId': self.patient.id, 'phone': '0000000000'}, format='json')
        self.assertEqual(wrong.status_code, status.HTTP_404_NOT_FOUND)

        ok = anon.post(reverse('patient-tokens'), {'patientId': self.patient.id, 'phone': '+91 98765 43210'}, format='json')
        self.assertEqual(ok.status_code, status.HTTP_200_OK)
        self.assertEqual(len(ok.data['data']), 1)
        self.assertEqual(ok.data['data'][0]['tokenNumber'], 3)
        self.assertEqual(ok.data['data'][0]['peopleAhead'], 1)


class LoginAPITests(APITestCase):
    def test_login_returns_token_and_counter(self):
        user = User.objects.create_user(username='desk1', password='P@ssw0rd1', role='receptionist')
        category = CounterCategory.objects.create(name='Registration')
        counter = Counter.objects.create(name='Registration Desk 1', category=category, assigned_user=user)

        response = self.client.post(reverse('login_view'), {'username': 'desk1', 'password': 'P@ssw0rd1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['role'], 'receptionist')
        self.assertEqual(data['counterId'], counter.id)

        self.client.credentials(HTTP_AUTHORIZATION=f"Token {data['token']}")
        stats = self.client.get(reverse('stats-daily'))
        self.assertEqual(stats.status_code, status.HTTP_200_OK)

    def test_bad_credentials(self):
        User.objects.create_user(username='desk1', password='P@ssw0rd1')
        response = self.client.post(reverse('login_view'), {'username': 'desk1', 'password': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error']['code'], 'authentication_failed')

    def test_healthz(self):
        response = self.client.get(reverse('healthz'))
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['ok'])
