"""
In-process change feed for model records.

One interface for "tell me when records matching X change":

    subscription = feed.subscribe(Report, on_change, events=[ChangeEventType.UPDATE],
                                  assigned_to_id=user.id)
    ...
    subscription.unsubscribe()

Inserts and saves reach the feed through post_save. Writes that bypass
save() (QuerySet.update, used by the report lifecycle service) must call
feed.publish() themselves once the write has succeeded.

A failing subscriber is logged and skipped; it never breaks the write
that produced the event or the other subscribers.
"""

import logging
import threading

from django.db.models.signals import post_save

logger = logging.getLogger(__name__)


class ChangeEventType:
    INSERT = 'insert'
    UPDATE = 'update'
    DELETE = 'delete'

    ALL = [INSERT, UPDATE, DELETE]


class ChangeEvent:
    """
    A change to one record.

    changes maps field name to new value; previous maps the same fields to
    the values they held before the write (when the publisher knows them).
    """

    def __init__(self, event_type, instance, changes=None, previous=None, actor=None):
        self.event_type = event_type
        self.instance = instance
        self.model = instance.__class__
        self.changes = dict(changes or {})
        self.previous = dict(previous or {})
        self.actor = actor

    def changed(self, field):
        return field in self.changes

    def __repr__(self):
        return (
            f"<ChangeEvent {self.event_type} {self.model.__name__}:{self.instance.pk} "
            f"fields={sorted(self.changes)}>"
        )


class Subscription:
    """Handle returned by ChangeFeed.subscribe()."""

    def __init__(self, feed, model, callback, event_types, filters):
        self.feed = feed
        self.model = model
        self.callback = callback
        self.event_types = frozenset(event_types)
        self.filters = filters
        self.active = True

    def matches(self, event):
        if not isinstance(event.instance, self.model):
            return False
        if event.event_type not in self.event_types:
            return False
        for field, expected in self.filters.items():
            value = getattr(event.instance, field, None)
            if isinstance(expected, (list, tuple, set, frozenset)):
                if value not in expected and str(value) not in {str(e) for e in expected}:
                    return False
            elif value != expected and str(value) != str(expected):
                return False
        return True

    def unsubscribe(self):
        self.feed.remove(self)


class ChangeFeed:
    def __init__(self):
        self._subscriptions = []
        self._connected_models = set()
        self._lock = threading.Lock()

    def subscribe(self, model, callback, events=None, **filters):
        """
        Call callback(event) for every change to a model record that
        matches all field filters. A filter value may be a collection,
        meaning "any of".
        """
        event_types = events or ChangeEventType.ALL
        unknown = set(event_types) - set(ChangeEventType.ALL)
        if unknown:
            raise ValueError(f"Unknown change event types: {sorted(unknown)}")

        subscription = Subscription(self, model, callback, event_types, filters)
        with self._lock:
            self._subscriptions.append(subscription)
        self._connect(model)
        logger.debug(f"Subscribed {getattr(callback, '__qualname__', callback)} to {model.__name__} changes")
        return subscription

    def remove(self, subscription):
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
        subscription.active = False

    def clear(self):
        with self._lock:
            for subscription in self._subscriptions:
                subscription.active = False
            self._subscriptions = []

    def subscriptions_for(self, model):
        with self._lock:
            return [s for s in self._subscriptions if issubclass(model, s.model)]

    def publish(self, event):
        """Deliver an event to every matching subscriber. Returns the number notified."""
        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(event)]

        delivered = 0
        for subscription in targets:
            try:
                subscription.callback(event)
                delivered += 1
            except Exception:
                logger.exception(f"Change feed subscriber failed for {event!r}")
        return delivered

    def _connect(self, model):
        with self._lock:
            if model in self._connected_models:
                return
            self._connected_models.add(model)
        post_save.connect(
            self._on_post_save,
            sender=model,
            weak=False,
            dispatch_uid=f'changefeed-{model._meta.label}-{id(self)}',
        )

    def _on_post_save(self, sender, instance, created, update_fields=None, raw=False, **kwargs):
        if raw:
            return
        if created:
            event = ChangeEvent(ChangeEventType.INSERT, instance)
        else:
            fields = update_fields or []
            if 'is_deleted' in fields and getattr(instance, 'is_deleted', False):
                event_type = ChangeEventType.DELETE
            else:
                event_type = ChangeEventType.UPDATE
            event = ChangeEvent(
                event_type,
                instance,
                changes={name: getattr(instance, name, None) for name in fields},
            )
        self.publish(event)


feed = ChangeFeed()
