from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Location",
            fields=[
                ("id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("address", models.CharField(blank=True, default="", max_length=255)),
                ("hourly_rate_cents", models.PositiveIntegerField()),
                ("currency", models.CharField(default="EUR", max_length=3)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Wallet",
            fields=[
                ("user_id", models.CharField(max_length=128, primary_key=True, serialize=False)),
                ("balance_cents", models.BigIntegerField(default=0)),
                ("entry_count", models.PositiveBigIntegerField(default=0)),
            ],
        ),
        migrations.CreateModel(
            name="LedgerEntry",
            fields=[
                ("id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("user_id", models.CharField(max_length=128)),
                ("sequence", models.PositiveBigIntegerField()),
                (
                    "kind",
                    models.CharField(
                        choices=[("debit", "Debit"), ("credit", "Credit"), ("refund", "Refund")],
                        max_length=16,
                    ),
                ),
                ("amount_cents", models.PositiveBigIntegerField()),
                ("balance_before", models.BigIntegerField()),
                ("balance_after", models.BigIntegerField()),
                ("reference_code", models.CharField(max_length=64)),
                (
                    "status",
                    models.CharField(
                        choices=[("completed", "Completed"), ("failed", "Failed")],
                        max_length=16,
                    ),
                ),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("related_session_id", models.CharField(blank=True, max_length=64, null=True)),
                ("created_at", models.DateTimeField()),
            ],
            options={
                "ordering": ["user_id", "-sequence"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("user_id", "sequence"), name="ledger_user_sequence"
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Session",
            fields=[
                ("id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("user_id", models.CharField(max_length=128)),
                ("location_id", models.CharField(max_length=64)),
                ("location_name", models.CharField(max_length=255)),
                ("start_time", models.DateTimeField()),
                ("end_time", models.DateTimeField()),
                ("duration_minutes", models.PositiveIntegerField()),
                ("extension_minutes", models.PositiveIntegerField(default=0)),
                ("unit_price_per_hour_cents", models.PositiveIntegerField()),
                ("total_price_cents", models.PositiveBigIntegerField()),
                ("currency", models.CharField(max_length=3)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("confirmed", "Confirmed"),
                            ("checked_in", "Checked In"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                            ("no_show", "No Show"),
                        ],
                        max_length=16,
                    ),
                ),
                ("check_in_code", models.CharField(max_length=16)),
                ("reference_code", models.CharField(max_length=16, unique=True)),
                ("token", models.TextField()),
                ("checked_in_at", models.DateTimeField(blank=True, null=True)),
                ("checked_out_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancellation_reason", models.CharField(blank=True, max_length=255, null=True)),
                ("created_at", models.DateTimeField()),
                ("updated_at", models.DateTimeField()),
            ],
            options={
                "ordering": ["start_time"],
                "indexes": [
                    models.Index(fields=["user_id", "start_time"], name="session_user_start_idx")
                ],
            },
        ),
    ]
