import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PaymentWebhookEvent",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "event_id",
                    models.CharField(
                        help_text="Gateway event id. Must be unique for idempotency.",
                        max_length=128,
                        unique=True,
                    ),
                ),
                ("event_type", models.CharField(blank=True, default="", max_length=64)),
                (
                    "gateway_order_id",
                    models.CharField(blank=True, db_index=True, default="", max_length=64),
                ),
                ("gateway_payment_id", models.CharField(blank=True, default="", max_length=64)),
                (
                    "outcome",
                    models.CharField(
                        choices=[
                            ("reconciled", "Reconciled"),
                            ("failure_recorded", "Failure recorded"),
                            ("ignored", "Ignored"),
                        ],
                        default="ignored",
                        max_length=32,
                    ),
                ),
                ("payload", models.JSONField(blank=True, default=dict)),
                ("received_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-received_at"],
            },
        ),
    ]
