from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("planning_data", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="planningwatch",
            name="last_seen_ids",
            field=models.JSONField(blank=True, default=list),
        ),
    ]
