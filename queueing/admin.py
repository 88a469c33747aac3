"""
Django admin registrations for the queue models.

Counters, categories and staff are configured here; tokens are shown
read-mostly since their status should only change through the API.
"""
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import (
    Counter,
    CounterCategory,
    Department,
    NotificationSubscription,
    Patient,
    Token,
    TokenSequence,
    TokenTransition,
    User,
)


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'created_at')
    search_fields = ('name',)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('username', 'role', 'department', 'is_staff', 'is_superuser')
    list_filter = ('role', 'department')
    search_fields = ('username', 'first_name', 'last_name')
    fieldsets = BaseUserAdmin.fieldsets + (('Hospital', {'fields': ('role', 'department')}),)


@admin.register(CounterCategory)
class CounterCategoryAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'department', 'created_at')
    search_fields = ('name',)


@admin.register(Counter)
class CounterAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'category', 'location', 'status', 'assigned_user')
    list_filter = ('status', 'category', 'department')
    search_fields = ('name', 'location')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'phone', 'age', 'gender')
    search_fields = ('name', 'phone')


@admin.register(NotificationSubscription)
class NotificationSubscriptionAdmin(admin.ModelAdmin):
    list_display = ('patient', 'updated_at')
    search_fields = ('patient__name',)


class TokenTransitionInline(admin.TabularInline):
    model = TokenTransition
    extra = 0
    readonly_fields = ('from_status', 'to_status', 'operator', 'timestamp', 'reason')
    can_delete = False


@admin.register(Token)
class TokenAdmin(admin.ModelAdmin):
    list_display = ('token_number', 'token_date', 'patient', 'counter', 'priority', 'status', 'created_at')
    list_filter = ('status', 'priority', 'token_date', 'counter__category')
    search_fields = ('patient__name', 'token_number')
    readonly_fields = ('token_number', 'token_date', 'status', 'estimated_wait_time', 'actual_wait_time',
                       'created_at', 'called_at', 'completed_at', 'called_by', 'issued_by')
    inlines = [TokenTransitionInline]


@admin.register(TokenSequence)
class TokenSequenceAdmin(admin.ModelAdmin):
    list_display = ('day', 'last_number')
    readonly_fields = ('day', 'last_number')
