import django.core.serializers.json
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="OutboxEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("aggregate_type", models.CharField(max_length=64, verbose_name="Aggregate Type")),
                ("aggregate_id", models.CharField(max_length=64, verbose_name="Aggregate ID")),
                ("event_type", models.CharField(
                    db_index=True,
                    help_text="Stable identifier, e.g. 'product.approved'. Renaming is a breaking change.",
                    max_length=100,
                    verbose_name="Event Type",
                )),
                ("payload", models.JSONField(
                    encoder=django.core.serializers.json.DjangoJSONEncoder, verbose_name="Payload",
                )),
                ("metadata", models.JSONField(
                    blank=True, encoder=django.core.serializers.json.DjangoJSONEncoder,
                    null=True, verbose_name="Metadata",
                )),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("dispatched_at", models.DateTimeField(
                    blank=True, help_text="Set by the external relay only.",
                    null=True, verbose_name="Dispatched At",
                )),
            ],
            options={
                "verbose_name": "Outbox Event",
                "verbose_name_plural": "Outbox Events",
                "ordering": ["id"],
                "indexes": [
                    models.Index(
                        fields=["aggregate_type", "aggregate_id", "id"],
                        name="outbox_aggregate_idx",
                    ),
                    models.Index(
                        condition=models.Q(("dispatched_at__isnull", True)),
                        fields=["id"],
                        name="outbox_undispatched_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="InvariantLock",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("key", models.CharField(max_length=191, unique=True, verbose_name="Lock Key")),
                ("acquired_at", models.DateTimeField(blank=True, null=True, verbose_name="Last Acquired At")),
            ],
            options={
                "verbose_name": "Invariant Lock",
                "verbose_name_plural": "Invariant Locks",
            },
        ),
    ]
