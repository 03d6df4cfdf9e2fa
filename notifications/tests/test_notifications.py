import uuid

from django.test import TestCase, TransactionTestCase
from rest_framework import status
from rest_framework.test import APIClient

from authentication.models import User, UserRole
from core.changefeed import feed
from notifications.models import Notification, NotificationType
from notifications.services import NotificationService
from reports.models import Report
from reports.services import ReportLifecycleService

PASSWORD = 'Str0ng-pass-2024'
NOTIFICATIONS_URL = '/api/v1/notifications/'


class NotificationSubscriptionTests(TransactionTestCase):

    def test_service_listens_on_the_change_feed(self):
        callbacks = [s.callback for s in feed.subscriptions_for(Report)]
        self.assertEqual(callbacks.count(NotificationService.on_report_change), 1)

    def test_reporter_found_by_email_when_not_linked(self):
        admin = User.objects.create_staff('admin@example.com', PASSWORD, UserRole.ADMIN)
        technician = User.objects.create_staff('tech@example.com', PASSWORD, UserRole.TECHNICIAN)
        citizen = User.objects.create_user('Citizen@Example.com', PASSWORD)
        report = Report.objects.create(
            title='Fallen tree',
            description='A tree fell across the footpath during the storm.',
            location='Jl. Kenanga',
            reporter_email='citizen@example.com',
        )

        ReportLifecycleService.assign(report, admin, technician)

        self.assertTrue(Notification.objects.filter(
            recipient=citizen,
            notification_type=NotificationType.REPORT_ASSIGNED,
        ).exists())

    def test_notes_only_change_sends_nothing(self):
        admin = User.objects.create_staff('admin@example.com', PASSWORD, UserRole.ADMIN)
        report = Report.objects.create(
            title='Graffiti',
            description='Graffiti on the wall of the public toilet block.',
            location='Taman Kota',
            reporter_email='someone@example.com',
        )
        before = Notification.objects.count()

        ReportLifecycleService.update_notes(report, admin, 'Cleaning crew booked')

        self.assertEqual(Notification.objects.count(), before)


class NotificationAPITests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user('citizen@example.com', PASSWORD)
        self.other = User.objects.create_user('other@example.com', PASSWORD)
        self.first = Notification.objects.create(
            recipient=self.user, title='Report assigned', message='A technician is on the way.',
            notification_type=NotificationType.REPORT_ASSIGNED,
        )
        self.second = Notification.objects.create(
            recipient=self.user, title='Report resolved', message='The repair was approved.',
            notification_type=NotificationType.REPORT_APPROVED,
        )
        self.foreign = Notification.objects.create(
            recipient=self.other, title='Not yours', message='Belongs to someone else.',
        )
        self.client.force_authenticate(user=self.user)

    def test_list_only_own(self):
        response = self.client.get(NOTIFICATIONS_URL)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)

    def test_filters(self):
        self.first.mark_as_read()

        unread = self.client.get(NOTIFICATIONS_URL, {'is_read': 'false'})
        self.assertEqual(unread.data['count'], 1)

        approved = self.client.get(NOTIFICATIONS_URL, {'type': NotificationType.REPORT_APPROVED})
        self.assertEqual(approved.data['results'][0]['id'], str(self.second.id))

    def test_detail_of_someone_elses_notification(self):
        response = self.client.get(f'{NOTIFICATIONS_URL}{self.foreign.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_mark_read(self):
        response = self.client.post(f'{NOTIFICATIONS_URL}{self.first.id}/read/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_read'])
        self.first.refresh_from_db()
        self.assertIsNotNone(self.first.read_at)

        missing = self.client.post(f'{NOTIFICATIONS_URL}{uuid.uuid4()}/read/')
        self.assertEqual(missing.status_code, status.HTTP_404_NOT_FOUND)

    def test_read_all_and_unread_count(self):
        self.assertEqual(self.client.get(f'{NOTIFICATIONS_URL}unread-count/').data['unread_count'], 2)

        response = self.client.post(f'{NOTIFICATIONS_URL}read-all/')
        self.assertEqual(response.data['count'], 2)

        self.assertEqual(self.client.get(f'{NOTIFICATIONS_URL}unread-count/').data['unread_count'], 0)
        self.foreign.refresh_from_db()
        self.assertFalse(self.foreign.is_read)

    def test_delete_is_soft(self):
        response = self.client.delete(f'{NOTIFICATIONS_URL}{self.first.id}/')

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Notification.objects.filter(id=self.first.id).exists())
        self.assertTrue(Notification.all_objects.filter(id=self.first.id, is_deleted=True).exists())
