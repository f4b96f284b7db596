"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
Timestamps are written from the engine clock, not ``auto_now``, so that
stored state agrees with the instant the domain decided on.
"""

from django.db import models


class Location(models.Model):
    """Persistence model for bookable gym locations (the catalog)."""

    id = models.CharField(primary_key=True, max_length=64)
    name = models.CharField(max_length=255)
    address = models.CharField(max_length=255, blank=True, default="")
    hourly_rate_cents = models.PositiveIntegerField()
    currency = models.CharField(max_length=3, default="EUR")

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Wallet(models.Model):
    """Running balance per user.

    The row doubles as the per-user lock: ledger appends and session
    inserts take it with ``select_for_update``.
    """

    user_id = models.CharField(primary_key=True, max_length=128)
    balance_cents = models.BigIntegerField(default=0)
    entry_count = models.PositiveBigIntegerField(default=0)

    def __str__(self) -> str:
        return f"{self.user_id}: {self.balance_cents}"


class LedgerEntry(models.Model):
    """Persistence model for append-only wallet transactions."""

    class Kind(models.TextChoices):
        DEBIT = "debit"
        CREDIT = "credit"
        REFUND = "refund"

    class Status(models.TextChoices):
        COMPLETED = "completed"
        FAILED = "failed"

    id = models.CharField(primary_key=True, max_length=64)
    user_id = models.CharField(max_length=128)
    sequence = models.PositiveBigIntegerField()
    kind = models.CharField(max_length=16, choices=Kind.choices)
    amount_cents = models.PositiveBigIntegerField()
    balance_before = models.BigIntegerField()
    balance_after = models.BigIntegerField()
    reference_code = models.CharField(max_length=64)
    status = models.CharField(max_length=16, choices=Status.choices)
    description = models.CharField(max_length=255, blank=True, default="")
    related_session_id = models.CharField(max_length=64, null=True, blank=True)
    created_at = models.DateTimeField()

    class Meta:
        ordering = ["user_id", "-sequence"]
        constraints = [
            models.UniqueConstraint(fields=["user_id", "sequence"], name="ledger_user_sequence"),
        ]

    def __str__(self) -> str:
        return f"{self.kind} {self.amount_cents} ({self.reference_code})"


class Session(models.Model):
    """Persistence model for booked gym sessions."""

    class Status(models.TextChoices):
        CONFIRMED = "confirmed"
        CHECKED_IN = "checked_in"
        COMPLETED = "completed"
        CANCELLED = "cancelled"
        NO_SHOW = "no_show"

    id = models.CharField(primary_key=True, max_length=64)
    user_id = models.CharField(max_length=128)
    location_id = models.CharField(max_length=64)
    location_name = models.CharField(max_length=255)
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    duration_minutes = models.PositiveIntegerField()
    extension_minutes = models.PositiveIntegerField(default=0)
    unit_price_per_hour_cents = models.PositiveIntegerField()
    total_price_cents = models.PositiveBigIntegerField()
    currency = models.CharField(max_length=3)
    status = models.CharField(max_length=16, choices=Status.choices)
    check_in_code = models.CharField(max_length=16)
    reference_code = models.CharField(max_length=16, unique=True)
    token = models.TextField()
    checked_in_at = models.DateTimeField(null=True, blank=True)
    checked_out_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=255, null=True, blank=True)
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()

    class Meta:
        ordering = ["start_time"]
        indexes = [
            models.Index(fields=["user_id", "start_time"], name="session_user_start_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.reference_code} - {self.location_name} {self.start_time}"
