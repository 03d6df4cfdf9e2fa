import uuid

import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('event_type', models.CharField(choices=[('auth.login.success', 'Login Success'), ('auth.login.failed', 'Login Failed'), ('auth.logout', 'Logout'), ('auth.registered', 'Registered'), ('auth.token.rejected', 'Token Rejected'), ('user.created', 'User Created'), ('user.updated', 'User Updated'), ('user.role.changed', 'User Role Changed'), ('user.suspended', 'User Suspended'), ('user.restored', 'User Restored'), ('report.created', 'Report Created'), ('report.viewed', 'Report Viewed'), ('report.assigned', 'Report Assigned'), ('report.unassigned', 'Report Unassigned'), ('report.status.changed', 'Report Status Changed'), ('report.transition.denied', 'Report Transition Denied'), ('report.notes.updated', 'Report Notes Updated'), ('facility.created', 'Facility Created'), ('facility.updated', 'Facility Updated'), ('review.created', 'Review Created'), ('system.error', 'System Error'), ('system.security.alert', 'Security Alert')], db_index=True, help_text='Type of event being logged', max_length=50)),
                ('severity', models.CharField(choices=[('debug', 'Debug'), ('info', 'Info'), ('warning', 'Warning'), ('error', 'Error'), ('critical', 'Critical')], db_index=True, default='info', help_text='Severity level of the event', max_length=10)),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now, help_text='When the event occurred')),
                ('actor_id', models.CharField(blank=True, db_index=True, help_text='UUID of user who performed action', max_length=36)),
                ('actor_role', models.CharField(blank=True, help_text='Role of actor at time of action', max_length=20)),
                ('actor_email', models.CharField(blank=True, help_text='Email of actor at time of action', max_length=255)),
                ('target_type', models.CharField(blank=True, help_text='Type of entity being acted upon', max_length=50)),
                ('target_id', models.CharField(blank=True, db_index=True, help_text='UUID of target entity', max_length=36)),
                ('ip_address', models.GenericIPAddressField(blank=True, help_text='Client IP address', null=True)),
                ('user_agent', models.CharField(blank=True, help_text='Client user agent string', max_length=500)),
                ('request_method', models.CharField(blank=True, help_text='HTTP method', max_length=10)),
                ('request_path', models.CharField(blank=True, help_text='API endpoint path', max_length=500)),
                ('description', models.TextField(blank=True, help_text='Human-readable description of event')),
                ('metadata', models.JSONField(blank=True, default=dict, help_text='Additional structured data about the event')),
                ('success', models.BooleanField(default=True, help_text='Whether the action was successful')),
                ('error_message', models.TextField(blank=True, help_text='Error message if action failed')),
            ],
            options={
                'verbose_name': 'Audit Log',
                'verbose_name_plural': 'Audit Logs',
                'db_table': 'audit_logs',
                'ordering': ['-timestamp'],
                'indexes': [
                    models.Index(fields=['event_type', 'timestamp'], name='audit_event_ts_idx'),
                    models.Index(fields=['actor_id', 'timestamp'], name='audit_actor_ts_idx'),
                    models.Index(fields=['target_id', 'timestamp'], name='audit_target_ts_idx'),
                    models.Index(fields=['severity', 'timestamp'], name='audit_severity_ts_idx'),
                ],
            },
        ),
    ]
