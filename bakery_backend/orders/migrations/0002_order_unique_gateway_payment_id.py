from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.AddConstraint(
            model_name="order",
            constraint=models.UniqueConstraint(
                condition=models.Q(("gateway_payment_id", ""), _negated=True),
                fields=("gateway_payment_id",),
                name="order_unique_gateway_payment_id",
            ),
        ),
    ]
