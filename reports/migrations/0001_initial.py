import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Report',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID v4)', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='Timestamp when record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated')),
                ('is_deleted', models.BooleanField(db_index=True, default=False, help_text='Soft delete flag')),
                ('deleted_at', models.DateTimeField(blank=True, help_text='Timestamp when record was soft-deleted', null=True)),
                ('title', models.CharField(help_text='Short summary of the damage', max_length=200)),
                ('description', models.TextField(help_text='Detailed description of the damage')),
                ('location', models.CharField(help_text='Where the damage is (free text)', max_length=255)),
                ('category', models.CharField(choices=[('road', 'Damaged Road'), ('streetlight', 'Street Light'), ('drainage', 'Drainage'), ('park', 'Park'), ('bridge', 'Bridge'), ('public_facility', 'Public Facility'), ('other', 'Other')], db_index=True, default='other', max_length=30)),
                ('priority', models.CharField(choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High')], db_index=True, default='medium', max_length=20)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('assigned', 'Assigned'), ('progress', 'In Progress'), ('completed', 'Completed'), ('approved', 'Approved'), ('rejected', 'Rejected')], db_index=True, default='pending', max_length=20)),
                ('reporter_email', models.EmailField(db_index=True, help_text='Contact email of the reporter', max_length=255)),
                ('reporter_phone', models.CharField(blank=True, help_text='Optional contact phone number', max_length=20)),
                ('completion_notes', models.TextField(blank=True, help_text='Completion summary or rejection reason', null=True)),
                ('image_url', models.URLField(blank=True, help_text='Optional photo of the damage', max_length=500)),
                ('assigned_to', models.ForeignKey(blank=True, help_text='Technician responsible for the repair', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='assigned_reports', to=settings.AUTH_USER_MODEL)),
                ('reporter', models.ForeignKey(blank=True, help_text='Account that submitted the report, when logged in', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='submitted_reports', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Report',
                'verbose_name_plural': 'Reports',
                'db_table': 'reports',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', 'priority'], name='reports_status_prio_idx'),
                    models.Index(fields=['assigned_to', 'status'], name='reports_assignee_status_idx'),
                    models.Index(fields=['category', 'created_at'], name='reports_category_created_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ReportStatusHistory',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, help_text='Unique identifier (UUID v4)', primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True, help_text='Timestamp when record was created')),
                ('updated_at', models.DateTimeField(auto_now=True, help_text='Timestamp when record was last updated')),
                ('is_deleted', models.BooleanField(db_index=True, default=False, help_text='Soft delete flag')),
                ('deleted_at', models.DateTimeField(blank=True, help_text='Timestamp when record was soft-deleted', null=True)),
                ('from_status', models.CharField(blank=True, choices=[('pending', 'Pending'), ('assigned', 'Assigned'), ('progress', 'In Progress'), ('completed', 'Completed'), ('approved', 'Approved'), ('rejected', 'Rejected')], help_text='Previous status', max_length=20)),
                ('to_status', models.CharField(choices=[('pending', 'Pending'), ('assigned', 'Assigned'), ('progress', 'In Progress'), ('completed', 'Completed'), ('approved', 'Approved'), ('rejected', 'Rejected')], help_text='New status', max_length=20)),
                ('reason', models.TextField(blank=True, help_text='Notes or reason given with the change')),
                ('assigned_to', models.ForeignKey(blank=True, help_text='Assignee after the change', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('changed_by', models.ForeignKey(help_text='User who changed the status', on_delete=django.db.models.deletion.PROTECT, related_name='report_status_changes', to=settings.AUTH_USER_MODEL)),
                ('report', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='status_history', to='reports.report')),
            ],
            options={
                'verbose_name': 'Report Status History',
                'verbose_name_plural': 'Report Status Histories',
                'db_table': 'report_status_history',
                'ordering': ['-created_at'],
            },
        ),
    ]
