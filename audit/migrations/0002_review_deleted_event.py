from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('audit', '0001_initial'),
    ]

    operations = [
        migrations.AlterField(
            model_name='auditlog',
            name='event_type',
            field=models.CharField(choices=[('auth.login.success', 'Login Success'), ('auth.login.failed', 'Login Failed'), ('auth.logout', 'Logout'), ('auth.registered', 'Registered'), ('auth.token.rejected', 'Token Rejected'), ('user.created', 'User Created'), ('user.updated', 'User Updated'), ('user.role.changed', 'User Role Changed'), ('user.suspended', 'User Suspended'), ('user.restored', 'User Restored'), ('report.created', 'Report Created'), ('report.viewed', 'Report Viewed'), ('report.assigned', 'Report Assigned'), ('report.unassigned', 'Report Unassigned'), ('report.status.changed', 'Report Status Changed'), ('report.transition.denied', 'Report Transition Denied'), ('report.notes.updated', 'Report Notes Updated'), ('facility.created', 'Facility Created'), ('facility.updated', 'Facility Updated'), ('review.created', 'Review Created'), ('review.deleted', 'Review Deleted'), ('system.error', 'System Error'), ('system.security.alert', 'Security Alert')], db_index=True, help_text='Type of event being logged', max_length=50),
        ),
    ]
