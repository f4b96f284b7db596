"""Serializers for request validation and for rendering domain models.

Input serializers only check shape and types; business rules stay in the
services. Output serializers read attributes straight off the frozen
domain dataclasses.
"""

from rest_framework import serializers

from ticketing.domain import SessionFilter
from ticketing.services.tokens import serialize_token


class EnumValueField(serializers.Field):
    """Renders an Enum member as its value."""

    def __init__(self, **kwargs):
        kwargs["read_only"] = True
        super().__init__(**kwargs)

    def to_representation(self, value):
        return value.value


# -- requests -----------------------------------------------------------


class CreateSessionSerializer(serializers.Serializer):
    user_id = serializers.CharField(max_length=128)
    location_id = serializers.CharField(max_length=64)
    start_time = serializers.DateTimeField()
    duration_minutes = serializers.IntegerField()


class CheckInSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=32, trim_whitespace=False)


class ExtendSessionSerializer(serializers.Serializer):
    additional_minutes = serializers.IntegerField()


class CancelSessionSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True)


class ScanSerializer(serializers.Serializer):
    token = serializers.CharField()
    location_id = serializers.CharField(max_length=64)


class TopUpSerializer(serializers.Serializer):
    amount_cents = serializers.IntegerField()


class SessionFilterSerializer(serializers.Serializer):
    filter = serializers.ChoiceField(
        choices=[f.value for f in SessionFilter], default=SessionFilter.UPCOMING.value
    )


# -- responses ----------------------------------------------------------


class SessionSerializer(serializers.Serializer):
    """Serializer for Session domain model."""

    id = serializers.CharField()
    user_id = serializers.CharField()
    location_id = serializers.CharField()
    location_name = serializers.CharField()
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()
    duration_minutes = serializers.IntegerField()
    extension_minutes = serializers.IntegerField()
    unit_price_per_hour_cents = serializers.IntegerField()
    total_price_cents = serializers.IntegerField()
    currency = serializers.CharField()
    status = EnumValueField()
    check_in_code = serializers.CharField()
    reference_code = serializers.CharField()
    token = serializers.SerializerMethodField()
    checked_in_at = serializers.DateTimeField(allow_null=True)
    checked_out_at = serializers.DateTimeField(allow_null=True)
    cancelled_at = serializers.DateTimeField(allow_null=True)
    cancellation_reason = serializers.CharField(allow_null=True)
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()

    def get_token(self, obj) -> str:
        return serialize_token(obj.token)


class SessionConfirmationSerializer(serializers.Serializer):
    session_id = serializers.CharField()
    location_id = serializers.CharField()
    location_name = serializers.CharField()
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()
    duration_minutes = serializers.IntegerField()
    total_price_cents = serializers.IntegerField()
    currency = serializers.CharField()
    reference_code = serializers.CharField()
    check_in_code = serializers.CharField()
    token = serializers.CharField()
    created_at = serializers.DateTimeField()


class CheckInResultSerializer(serializers.Serializer):
    session = SessionSerializer()
    checked_in_at = serializers.DateTimeField()
    message = serializers.CharField()


class LedgerEntrySerializer(serializers.Serializer):
    id = serializers.CharField()
    kind = EnumValueField()
    amount_cents = serializers.IntegerField()
    balance_before = serializers.IntegerField()
    balance_after = serializers.IntegerField()
    reference_code = serializers.CharField()
    status = EnumValueField()
    description = serializers.CharField()
    related_session_id = serializers.CharField(allow_null=True)
    created_at = serializers.DateTimeField()


class UsageReportSerializer(serializers.Serializer):
    session_id = serializers.CharField()
    location_id = serializers.CharField()
    user_id = serializers.CharField()
    reference_code = serializers.CharField()
    booked_start = serializers.DateTimeField()
    booked_end = serializers.DateTimeField()
    checked_in_at = serializers.DateTimeField(allow_null=True)
    checked_out_at = serializers.DateTimeField(allow_null=True)
    booked_minutes = serializers.IntegerField()
    extension_minutes = serializers.IntegerField()
    minutes_used = serializers.IntegerField()
    amount_charged_cents = serializers.IntegerField()
    hourly_rate_cents = serializers.IntegerField()
    currency = serializers.CharField()
    status = EnumValueField()


class ScanResultSerializer(serializers.Serializer):
    status = EnumValueField()
    allowed = serializers.BooleanField()
    message = serializers.CharField()
    session_id = serializers.CharField(allow_null=True)
    user_id = serializers.CharField(allow_null=True)
    remaining_minutes = serializers.IntegerField()
