from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Address",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("owner_id", models.CharField(db_index=True, max_length=64, verbose_name="Owner ID")),
                ("label", models.CharField(
                    blank=True, default="", help_text="e.g. 'Home', 'Office'.",
                    max_length=50, verbose_name="Label",
                )),
                ("recipient_name", models.CharField(max_length=150, verbose_name="Recipient Name")),
                ("phone_number", models.CharField(max_length=20, verbose_name="Phone Number")),
                ("province", models.CharField(max_length=100, verbose_name="Province")),
                ("city", models.CharField(max_length=100, verbose_name="City")),
                ("district", models.CharField(blank=True, default="", max_length=100, verbose_name="District")),
                ("postal_code", models.CharField(max_length=10, verbose_name="Postal Code")),
                ("address_line", models.TextField(verbose_name="Address Line")),
                ("notes", models.TextField(blank=True, default="", verbose_name="Notes")),
                ("is_default", models.BooleanField(default=False, verbose_name="Default")),
                ("last_used_at", models.DateTimeField(blank=True, null=True, verbose_name="Last Used At")),
            ],
            options={
                "verbose_name": "Address",
                "verbose_name_plural": "Addresses",
                "ordering": ["-is_default", "-created_at", "-pk"],
                "indexes": [
                    models.Index(fields=["owner_id", "is_default"], name="address_owner_default_idx"),
                ],
            },
        ),
    ]
