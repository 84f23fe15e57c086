from django.db import migrations, models


def _dimension(label):
    return models.DecimalField(
        blank=True, decimal_places=2, max_digits=8, null=True, verbose_name=f"{label} (cm)",
    )


class Migration(migrations.Migration):

    dependencies = [
        ("catalog", "0001_initial"),
    ]

    operations = [
        migrations.AddField(model_name="productdraft", name="length_cm", field=_dimension("Length")),
        migrations.AddField(model_name="productdraft", name="width_cm", field=_dimension("Width")),
        migrations.AddField(model_name="productdraft", name="height_cm", field=_dimension("Height")),
        migrations.AddField(model_name="product", name="length_cm", field=_dimension("Length")),
        migrations.AddField(model_name="product", name="width_cm", field=_dimension("Width")),
        migrations.AddField(model_name="product", name="height_cm", field=_dimension("Height")),
    ]
