"""
Management command to seed demo users for Fix It Now.

Usage:
    python manage.py seed_users [--force]

Creates one account per role with known passwords:
    - admin@fixitnow.local       / Admin#FixItNow1      (admin)
    - technician@fixitnow.local  / Tech#FixItNow1       (technician)
    - government@fixitnow.local  / Gov#FixItNow1        (government)
    - citizen@fixitnow.local     / Citizen#FixItNow1    (public)
"""

from django.core.management.base import BaseCommand
from authentication.models import User, UserRole, UserStatus


DEMO_USERS = [
    {
        'email': 'admin@fixitnow.local',
        'password': 'Admin#FixItNow1',
        'role': UserRole.ADMIN,
        'name': 'Demo Administrator',
        'is_superuser': True,
    },
    {
        'email': 'technician@fixitnow.local',
        'password': 'Tech#FixItNow1',
        'role': UserRole.TECHNICIAN,
        'name': 'Demo Technician',
    },
    {
        'email': 'government@fixitnow.local',
        'password': 'Gov#FixItNow1',
        'role': UserRole.GOVERNMENT,
        'name': 'Demo Government Officer',
    },
    {
        'email': 'citizen@fixitnow.local',
        'password': 'Citizen#FixItNow1',
        'role': UserRole.PUBLIC,
        'name': 'Demo Citizen',
    },
]


class Command(BaseCommand):
    help = 'Seed demo users for every Fix It Now role'

    def add_arguments(self, parser):
        parser.add_argument(
            '--force',
            action='store_true',
            help='Reset passwords and roles even if users already exist',
        )

    def handle(self, *args, **options):
        force = options['force']
        created_count = 0
        updated_count = 0

        for entry in DEMO_USERS:
            user_data = dict(entry)
            email = user_data.pop('email')
            password = user_data.pop('password')
            role = user_data.pop('role')
            is_superuser = user_data.pop('is_superuser', False)

            try:
                user = User.objects.get(email=email)
                if force:
                    user.set_password(password)
                    user.role = role
                    user.status = UserStatus.ACTIVE
                    user.is_active = True
                    user.is_superuser = is_superuser
                    user.is_staff = role == UserRole.ADMIN
                    user.save()
                    updated_count += 1
                    self.stdout.write(self.style.WARNING(
                        f'  Updated: {email} ({role})'
                    ))
                else:
                    self.stdout.write(self.style.NOTICE(
                        f'  Exists:  {email} ({user.role}), use --force to reset'
                    ))
            except User.DoesNotExist:
                User.objects.create_user(
                    email=email,
                    password=password,
                    role=role,
                    status=UserStatus.ACTIVE,
                    is_superuser=is_superuser,
                    is_staff=role == UserRole.ADMIN,
                    **user_data,
                )
                created_count += 1
                self.stdout.write(self.style.SUCCESS(
                    f'  Created: {email} ({role})'
                ))

        self.stdout.write('')
        self.stdout.write(self.style.SUCCESS(
            f'Done! Created: {created_count}, Updated: {updated_count}'
        ))
