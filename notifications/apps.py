import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class NotificationsConfig(AppConfig):
    name = 'notifications'
    default_auto_field = 'django.db.models.BigAutoField'
    verbose_name = 'Notifications'

    def ready(self):
        """Listen for report changes on the change feed."""
        from core.changefeed import feed, ChangeEventType
        from reports.models import Report
        from .services import NotificationService

        callback = NotificationService.on_report_change
        if any(s.callback == callback for s in feed.subscriptions_for(Report)):
            return
        feed.subscribe(
            Report,
            callback,
            events=[ChangeEventType.INSERT, ChangeEventType.UPDATE],
        )
        logger.debug("Report notifications subscribed to the change feed")
