"""
Database models for the counter queue service.

Counters are grouped into categories (e.g. "Pharmacy") and patients are
routed to a category rather than a specific counter.  Each arrival gets
a :class:`Token` whose number is unique for the calendar day across the
whole facility.  A counter's queue is never stored; it is derived from
its tokens ordered by priority and creation time.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


class Department(models.Model):
    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.name


class User(AbstractUser):
    """Staff account with a hospital role.

    A staff member may be assigned to one counter (see
    :attr:`Counter.assigned_user`); "call next" without an explicit
    counter uses that assignment.
    """
    ROLE_CHOICES = [
        ('admin', 'Administrator'),
        ('doctor', 'Doctor'),
        ('nurse', 'Nurse'),
        ('pharmacist', 'Pharmacist'),
        ('receptionist', 'Receptionist'),
        ('technician', 'Technician'),
    ]
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='receptionist')
    department = models.ForeignKey(
        Department, null=True, blank=True, on_delete=models.SET_NULL, related_name='staff'
    )

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class CounterCategory(models.Model):
    """A group of interchangeable counters offering the same service."""
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    department = models.ForeignKey(
        Department, null=True, blank=True, on_delete=models.SET_NULL, related_name='counter_categories'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = 'counter categories'

    def __str__(self) -> str:
        return self.name


class Counter(models.Model):
    STATUS_ACTIVE = 'ACTIVE'
    STATUS_INACTIVE = 'INACTIVE'
    STATUS_CHOICES = ((STATUS_ACTIVE, 'Active'), (STATUS_INACTIVE, 'Inactive'))

    name = models.CharField(max_length=255)
    location = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    category = models.ForeignKey(CounterCategory, on_delete=models.PROTECT, related_name='counters')
    department = models.ForeignKey(
        Department, null=True, blank=True, on_delete=models.SET_NULL, related_name='counters'
    )
    assigned_user = models.OneToOneField(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='counter'
    )
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [models.Index(fields=['category', 'status', 'created_at'], name='counter_category_status_idx')]

    def __str__(self) -> str:
        return f"{self.name} ({self.category_id})"


class Patient(models.Model):
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, blank=True)
    age = models.PositiveIntegerField(null=True, blank=True)
    gender = models.CharField(max_length=10, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.name


class NotificationSubscription(models.Model):
    """A patient's Web Push subscription (endpoint + keys as sent by the browser)."""
    patient = models.OneToOneField(Patient, on_delete=models.CASCADE, related_name='notification_subscription')
    subscription = models.JSONField(default=dict)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"push subscription for patient {self.patient_id}"


class TokenSequence(models.Model):
    """Last token number issued on a calendar day.

    Incremented only inside the routing transaction while the row is
    locked, so its value always equals the number of tokens of that day.
    """
    day = models.DateField(unique=True)
    last_number = models.PositiveIntegerField(default=0)

    def __str__(self) -> str:
        return f"{self.day:%Y-%m-%d}: {self.last_number}"


class Token(models.Model):
    STATUS_WAITING = 'WAITING'
    STATUS_CALLED = 'CALLED'
    STATUS_COMPLETED = 'COMPLETED'
    STATUS_CANCELLED = 'CANCELLED'
    STATUS_CHOICES = (
        (STATUS_WAITING, 'Waiting'),
        (STATUS_CALLED, 'Called'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    )
    ACTIVE_STATUSES = (STATUS_WAITING, STATUS_CALLED)
    TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_CANCELLED)

    PRIORITY_NORMAL = 'NORMAL'
    PRIORITY_URGENT = 'URGENT'
    PRIORITY_CHOICES = ((PRIORITY_NORMAL, 'Normal'), (PRIORITY_URGENT, 'Urgent'))
    # Higher weight is served first
    PRIORITY_WEIGHTS = {PRIORITY_NORMAL: 0, PRIORITY_URGENT: 1}

    token_number = models.PositiveIntegerField()
    token_date = models.DateField(db_index=True)
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='tokens')
    counter = models.ForeignKey(Counter, on_delete=models.PROTECT, related_name='tokens')
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default=PRIORITY_NORMAL)
    priority_weight = models.PositiveSmallIntegerField(default=0)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_WAITING, db_index=True)
    estimated_wait_time = models.PositiveIntegerField(help_text="Minutes, computed once at creation")
    actual_wait_time = models.PositiveIntegerField(
        null=True, blank=True, help_text="Minutes between creation and the CALLED transition"
    )
    notes = models.TextField(blank=True)
    issued_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='issued_tokens'
    )
    called_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='called_tokens'
    )
    created_at = models.DateTimeField(default=timezone.now)
    called_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['token_date', 'token_number'], name='unique_daily_token_number'),
        ]
        indexes = [
            models.Index(fields=['counter', 'status', 'priority_weight', 'created_at'], name='token_counter_queue_idx'),
            models.Index(fields=['token_date', 'status'], name='token_day_status_idx'),
        ]

    def __str__(self) -> str:
        return f"Token {self.token_number} ({self.token_date:%Y-%m-%d}) at counter {self.counter_id}"


class TokenTransition(models.Model):
    """Records a status change of a token, including its initial issue."""
    token = models.ForeignKey(Token, related_name='transitions', on_delete=models.CASCADE)
    from_status = models.CharField(max_length=10, null=True, blank=True)
    to_status = models.CharField(max_length=10)
    operator = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='token_transitions'
    )
    timestamp = models.DateTimeField(default=timezone.now)
    reason = models.CharField(max_length=255, blank=True)

    def __str__(self) -> str:
        return f"{self.token_id}: {self.from_status} → {self.to_status}"
