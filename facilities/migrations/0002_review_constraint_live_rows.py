from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('facilities', '0001_initial'),
    ]

    operations = [
        migrations.RemoveConstraint(
            model_name='facilityreview',
            name='one_review_per_author',
        ),
        migrations.AddConstraint(
            model_name='facilityreview',
            constraint=models.UniqueConstraint(
                condition=models.Q(('is_deleted', False)),
                fields=('facility', 'author'),
                name='one_review_per_author',
            ),
        ),
    ]
