"""
Management command to populate the database with demo data.
"""
from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.db import transaction

from queueing.models import Counter, CounterCategory, Department, Patient, User
from queueing.services.router import route_arrival


class Command(BaseCommand):
    help = 'Populate database with departments, counters, staff and patients'

    def add_arguments(self, parser):
        parser.add_argument('--password', default='password123', help='Password for the demo staff accounts')
        parser.add_argument('--tokens', type=int, default=0, help='Route this many demo arrivals afterwards')

    def handle(self, *args, **options):
        self.stdout.write('Creating demo data...')
        with transaction.atomic():
            departments = self.create_departments()
            categories = self.create_categories(departments)
            staff = self.create_staff(departments, options['password'])
            counters = self.create_counters(categories, staff)
            patients = self.create_patients()
        if options['tokens']:
            self.create_tokens(patients, categories, staff['reception'], options['tokens'])
        self.stdout.write(self.style.SUCCESS(
            f'Done: {len(counters)} counters, {len(staff)} staff, {len(patients)} patients'
        ))

    def create_departments(self):
        data = [
            ('Administration', 'Front office, registration and billing.'),
            ('Pharmacy', 'Medication dispensing.'),
            ('Cardiology', 'Deals with disorders of the heart.'),
        ]
        departments = {}
        for name, description in data:
            dept, created = Department.objects.get_or_create(name=name, defaults={'description': description})
            departments[name] = dept
            if created:
                self.stdout.write(f'Created department: {dept.name}')
        return departments

    def create_categories(self, departments):
        data = [
            ('Registration', 'Patient registration and check-in.', 'Administration'),
            ('Pharmacy', 'Medication dispensing and prescription fulfillment.', 'Pharmacy'),
        ]
        categories = {}
        for name, description, dept in data:
            category, created = CounterCategory.objects.get_or_create(
                name=name, defaults={'description': description, 'department': departments[dept]}
            )
            categories[name] = category
            if created:
                self.stdout.write(f'Created category: {category.name}')
        return categories

    def create_staff(self, departments, password):
        data = [
            ('admin', 'admin', 'Administration', True),
            ('reception', 'receptionist', 'Administration', False),
            ('reception2', 'receptionist', 'Administration', False),
            ('pharmacist', 'pharmacist', 'Pharmacy', False),
        ]
        staff = {}
        for username, role, dept, is_admin in data:
            user, created = User.objects.get_or_create(
                username=username,
                defaults={
                    'password': make_password(password),
                    'role': role,
                    'department': departments[dept],
                    'is_staff': is_admin,
                    'is_superuser': is_admin,
                },
            )
            staff[username] = user
            if created:
                self.stdout.write(f'Created staff: {user.username} ({user.role})')
        return staff

    def create_counters(self, categories, staff):
        data = [
            ('Registration Desk 1', 'Building A, Lobby', 'Registration', 'reception'),
            ('Registration Desk 2', 'Building A, Lobby', 'Registration', 'reception2'),
            ('Pharmacy Counter 1', 'Building C, 1st Floor', 'Pharmacy', 'pharmacist'),
        ]
        counters = []
        for name, location, category, username in data:
            cat = categories[category]
            counter, created = Counter.objects.get_or_create(
                name=name,
                category=cat,
                defaults={
                    'location': location,
                    'department': cat.department,
                    'assigned_user': staff[username],
                },
            )
            counters.append(counter)
            if created:
                self.stdout.write(f'Created counter: {counter.name} ({cat.name})')
        return counters

    def create_patients(self):
        data = [
            ('Asha Verma', '9876543210', 34, 'F'),
            ('Rahul Nair', '9876501234', 52, 'M'),
            ('Meera Iyer', '', 67, 'F'),
            ('Karan Singh', '9123456780', 29, 'M'),
            ('Fatima Sheikh', '9988776655', 41, 'F'),
        ]
        patients = []
        for name, phone, age, gender in data:
            patient, created = Patient.objects.get_or_create(
                name=name, defaults={'phone': phone, 'age': age, 'gender': gender}
            )
            patients.append(patient)
            if created:
                self.stdout.write(f'Created patient: {patient.name}')
        return patients

    def create_tokens(self, patients, categories, issued_by, count):
        category_list = list(categories.values())
        for i in range(count):
            patient = patients[i % len(patients)]
            category = category_list[i % len(category_list)]
            token = route_arrival(patient.id, category.id, issued_by=issued_by)
            self.stdout.write(f'Issued token {token.token_number} to {patient.name} at {token.counter.name}')
