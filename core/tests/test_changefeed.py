from types import SimpleNamespace

from django.test import SimpleTestCase, TestCase

from core.changefeed import ChangeEvent, ChangeEventType, ChangeFeed
from facilities.models import Facility, FacilityStatus


class Record(SimpleNamespace):
    pk = 1


class OtherRecord(SimpleNamespace):
    pk = 2


class SubscriptionMatchingTests(SimpleTestCase):

    def setUp(self):
        self.feed = ChangeFeed()
        self.received = []
        self.addCleanup(self.feed.clear)

    def publish(self, instance, event_type=ChangeEventType.UPDATE, **changes):
        return self.feed.publish(ChangeEvent(event_type, instance, changes=changes))

    def subscribe(self, model=Record, **kwargs):
        self.feed._connected_models.add(model)
        return self.feed.subscribe(model, self.received.append, **kwargs)

    def test_field_filter(self):
        self.subscribe(assigned_to_id='tech-1')

        self.publish(Record(assigned_to_id='tech-1'))
        self.publish(Record(assigned_to_id='tech-2'))

        self.assertEqual(len(self.received), 1)
        self.assertEqual(self.received[0].instance.assigned_to_id, 'tech-1')

    def test_collection_filter_means_any_of(self):
        self.subscribe(status=['pending', 'assigned'])

        for status in ['pending', 'progress', 'assigned']:
            self.publish(Record(status=status))

        self.assertEqual([e.instance.status for e in self.received], ['pending', 'assigned'])

    def test_filter_values_compare_as_text(self):
        self.subscribe(assigned_to_id=42)
        self.publish(Record(assigned_to_id='42'))
        self.assertEqual(len(self.received), 1)

    def test_event_type_and_model_filters(self):
        self.subscribe(events=[ChangeEventType.INSERT])

        self.publish(Record(), ChangeEventType.UPDATE)
        self.publish(OtherRecord(), ChangeEventType.INSERT)
        delivered = self.publish(Record(), ChangeEventType.INSERT)

        self.assertEqual(delivered, 1)
        self.assertEqual(len(self.received), 1)

    def test_unsubscribe(self):
        subscription = self.subscribe()
        subscription.unsubscribe()

        self.assertEqual(self.publish(Record()), 0)
        self.assertFalse(subscription.active)
        self.assertEqual(self.feed.subscriptions_for(Record), [])

    def test_failing_subscriber_does_not_stop_others(self):
        def broken(event):
            raise RuntimeError("boom")

        self.feed._connected_models.add(Record)
        self.feed.subscribe(Record, broken)
        self.subscribe()

        with self.assertLogs('core.changefeed', level='ERROR'):
            delivered = self.publish(Record())

        self.assertEqual(delivered, 1)
        self.assertEqual(len(self.received), 1)

    def test_unknown_event_type(self):
        with self.assertRaises(ValueError):
            self.feed.subscribe(Record, self.received.append, events=['truncate'])

    def test_event_helpers(self):
        event = ChangeEvent(ChangeEventType.UPDATE, Record(), changes={'status': 'progress'})
        self.assertTrue(event.changed('status'))
        self.assertFalse(event.changed('assigned_to'))
        self.assertIs(event.model, Record)


class ModelSaveEventTests(TestCase):

    def setUp(self):
        self.feed = ChangeFeed()
        self.received = []
        self.addCleanup(self.feed.clear)
        self.feed.subscribe(Facility, self.received.append)

    def test_create_publishes_insert(self):
        facility = Facility.objects.create(name='Library')

        self.assertEqual(len(self.received), 1)
        self.assertEqual(self.received[0].event_type, ChangeEventType.INSERT)
        self.assertEqual(self.received[0].instance, facility)

    def test_save_with_update_fields_publishes_update(self):
        facility = Facility.objects.create(name='Library')
        facility.status = FacilityStatus.INACTIVE
        facility.save(update_fields=['status', 'updated_at'])

        event = self.received[-1]
        self.assertEqual(event.event_type, ChangeEventType.UPDATE)
        self.assertEqual(event.changes['status'], FacilityStatus.INACTIVE)

    def test_soft_delete_publishes_delete(self):
        facility = Facility.objects.create(name='Library')
        facility.delete()

        self.assertEqual(self.received[-1].event_type, ChangeEventType.DELETE)
        self.assertTrue(Facility.all_objects.filter(pk=facility.pk).exists())
