import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PlanningWatch",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "filter_type",
                    models.CharField(
                        choices=[
                            ("postcode", "Postcode"),
                            ("local-authority", "Local authority"),
                            ("organisation", "Organisation"),
                            ("entity", "Entity reference"),
                        ],
                        default="postcode",
                        max_length=50,
                    ),
                ),
                ("filter_value", models.CharField(max_length=255)),
                ("limit", models.PositiveIntegerField(default=100)),
                ("webhook_url", models.URLField(blank=True)),
                ("active", models.BooleanField(default=True)),
                ("last_checked_at", models.DateTimeField(blank=True, null=True)),
                ("last_new_count", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="SearchRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("filter_key", models.CharField(db_index=True, max_length=255)),
                ("filter_type", models.CharField(blank=True, max_length=50)),
                ("results", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["filter_key", "-created_at"], name="planning_search_key_latest"),
                ],
            },
        ),
    ]
