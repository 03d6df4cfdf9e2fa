from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken

from audit.models import AuditLog, AuditEventType
from authentication.backends import get_tokens_for_user
from authentication.models import User, UserRole, UserStatus

PASSWORD = 'Str0ng-pass-2024'


class AuthAPITestCase(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_staff('admin@example.com', PASSWORD, UserRole.ADMIN, name='Admin')
        self.technician = User.objects.create_staff('tech@example.com', PASSWORD, UserRole.TECHNICIAN)
        self.citizen = User.objects.create_user('citizen@example.com', PASSWORD, name='Citizen')


class LoginTests(AuthAPITestCase):

    def login(self, email, password):
        return self.client.post(reverse('auth:login'), {'email': email, 'password': password}, format='json')

    def test_login_returns_tokens_role_and_user(self):
        response = self.login('tech@example.com', PASSWORD)

        self.assertEqual(response.status_code, 200)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['role'], UserRole.TECHNICIAN)
        self.assertEqual(response.data['user']['email'], 'tech@example.com')
        self.assertTrue(AuditLog.objects.filter(
            event_type=AuditEventType.AUTH_LOGIN_SUCCESS,
            actor_id=str(self.technician.id),
        ).exists())

    def test_wrong_password_is_rejected_and_counted(self):
        response = self.login('citizen@example.com', 'not-the-password')

        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['error']['code'], 'BAD_REQUEST')

        self.citizen.refresh_from_db()
        self.assertEqual(self.citizen.failed_login_attempts, 1)
        self.assertTrue(AuditLog.objects.filter(
            event_type=AuditEventType.AUTH_LOGIN_FAILED,
            success=False,
        ).exists())

    def test_unknown_email_gets_the_same_answer(self):
        response = self.login('nobody@example.com', PASSWORD)
        self.assertEqual(response.status_code, 400)

    def test_suspended_account_is_told_so(self):
        self.citizen.suspend()

        response = self.login('citizen@example.com', PASSWORD)

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data['error']['code'], 'ACCOUNT_SUSPENDED')

    def test_successful_login_resets_failed_attempts(self):
        self.login('citizen@example.com', 'wrong')
        self.login('citizen@example.com', PASSWORD)

        self.citizen.refresh_from_db()
        self.assertEqual(self.citizen.failed_login_attempts, 0)
        self.assertIsNotNone(self.citizen.last_login)


class RegisterTests(AuthAPITestCase):

    def test_registration_creates_public_account(self):
        response = self.client.post(reverse('auth:register'), {
            'email': 'New.Citizen@Example.com',
            'name': 'New Citizen',
            'phone': '081234567890',
            'password': PASSWORD,
            'role': UserRole.ADMIN,
        }, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['role'], UserRole.PUBLIC)
        self.assertIn('access', response.data)

        user = User.objects.get(email='new.citizen@example.com')
        self.assertEqual(user.role, UserRole.PUBLIC)
        self.assertTrue(user.check_password(PASSWORD))

    def test_duplicate_email_is_rejected(self):
        response = self.client.post(reverse('auth:register'), {
            'email': 'CITIZEN@example.com',
            'name': 'Someone',
            'password': PASSWORD,
        }, format='json')

        self.assertEqual(response.status_code, 400)

    def test_bad_phone_number_is_rejected(self):
        response = self.client.post(reverse('auth:register'), {
            'email': 'another@example.com',
            'name': 'Someone',
            'phone': '12345',
            'password': PASSWORD,
        }, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertFalse(User.objects.filter(email='another@example.com').exists())


class CurrentUserTests(AuthAPITestCase):

    def test_requires_authentication(self):
        response = self.client.get(reverse('auth:current-user'))
        self.assertEqual(response.status_code, 401)

    def test_get_and_update_profile(self):
        self.client.force_authenticate(self.citizen)

        response = self.client.get(reverse('auth:current-user'))
        self.assertEqual(response.data['email'], 'citizen@example.com')

        response = self.client.patch(
            reverse('auth:current-user'),
            {'name': 'Renamed', 'role': UserRole.ADMIN},
            format='json',
        )
        self.assertEqual(response.status_code, 200)

        self.citizen.refresh_from_db()
        self.assertEqual(self.citizen.name, 'Renamed')
        self.assertEqual(self.citizen.role, UserRole.PUBLIC)


class UserManagementTests(AuthAPITestCase):

    def test_only_admins_list_users(self):
        self.client.force_authenticate(self.technician)
        response = self.client.get(reverse('auth:user-list'))
        self.assertEqual(response.status_code, 403)

    def test_list_filters_by_role(self):
        self.client.force_authenticate(self.admin)

        response = self.client.get(reverse('auth:user-list'), {'role': UserRole.TECHNICIAN})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['email'], 'tech@example.com')

    def test_admin_creates_technician(self):
        self.client.force_authenticate(self.admin)

        response = self.client.post(reverse('auth:user-create'), {
            'email': 'newtech@example.com',
            'name': 'New Tech',
            'role': UserRole.TECHNICIAN,
            'password': PASSWORD,
        }, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['role'], UserRole.TECHNICIAN)
        self.assertTrue(AuditLog.objects.filter(event_type=AuditEventType.USER_CREATED).exists())

    def test_admin_changes_role(self):
        self.client.force_authenticate(self.admin)

        response = self.client.patch(
            reverse('auth:user-role', kwargs={'user_id': self.citizen.id}),
            {'role': UserRole.TECHNICIAN},
            format='json',
        )

        self.assertEqual(response.status_code, 200)
        self.citizen.refresh_from_db()
        self.assertEqual(self.citizen.role, UserRole.TECHNICIAN)

        entry = AuditLog.objects.get(event_type=AuditEventType.USER_ROLE_CHANGED)
        self.assertEqual(entry.metadata, {'previous_role': UserRole.PUBLIC, 'new_role': UserRole.TECHNICIAN})

    def test_admin_cannot_change_own_role(self):
        self.client.force_authenticate(self.admin)

        response = self.client.patch(
            reverse('auth:user-role', kwargs={'user_id': self.admin.id}),
            {'role': UserRole.PUBLIC},
            format='json',
        )

        self.assertEqual(response.status_code, 403)
        self.admin.refresh_from_db()
        self.assertEqual(self.admin.role, UserRole.ADMIN)

    def test_suspend_and_reactivate(self):
        self.client.force_authenticate(self.admin)
        url = reverse('auth:user-status', kwargs={'user_id': self.technician.id})

        response = self.client.patch(url, {'status': UserStatus.SUSPENDED}, format='json')
        self.assertEqual(response.status_code, 200)
        self.technician.refresh_from_db()
        self.assertTrue(self.technician.is_suspended)
        self.assertFalse(self.technician.is_active)

        response = self.client.patch(url, {'status': UserStatus.ACTIVE}, format='json')
        self.assertEqual(response.status_code, 200)
        self.technician.refresh_from_db()
        self.assertEqual(self.technician.status, UserStatus.ACTIVE)
        self.assertTrue(self.technician.is_active)


class TokenTests(AuthAPITestCase):

    def test_logout_blacklists_refresh_token(self):
        tokens = get_tokens_for_user(self.citizen)
        self.client.force_authenticate(self.citizen)

        response = self.client.post(reverse('auth:logout'), {'refresh': tokens['refresh']}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(BlacklistedToken.objects.count(), 1)

        response = self.client.post(reverse('auth:token-refresh'), {'refresh': tokens['refresh']}, format='json')
        self.assertEqual(response.status_code, 401)

    def test_suspended_user_loses_access_with_valid_token(self):
        tokens = get_tokens_for_user(self.citizen)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")

        self.assertEqual(self.client.get(reverse('auth:current-user')).status_code, 200)

        self.citizen.suspend()

        response = self.client.get(reverse('auth:current-user'))
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.data['error']['code'], 'UNAUTHORIZED')


class SeedUsersCommandTests(TestCase):

    def test_creates_one_account_per_role_once(self):
        call_command('seed_users', stdout=StringIO())
        call_command('seed_users', stdout=StringIO())

        self.assertEqual(User.objects.count(), 4)
        self.assertEqual(
            set(User.objects.values_list('role', flat=True)),
            {UserRole.ADMIN, UserRole.TECHNICIAN, UserRole.GOVERNMENT, UserRole.PUBLIC},
        )
        self.assertTrue(User.objects.get(email='admin@fixitnow.local').is_superuser)
