"""Unit tests for TokenIssuer: integrity, wire format and time predicates."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from ticketing.domain.errors import ErrorCode, ValidationError
from ticketing.services.tokens import TokenIssuer, deserialize_token, serialize_token

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
T1 = T0 + timedelta(hours=1)


@pytest.fixture
def token(issuer):
    return issuer.issue("sess-1", "gym_1", "u1", T0, T1, "GF-ABC123")


class TestIssue:
    def test_deterministic(self, issuer):
        """Same inputs give the same checksum."""
        a = issuer.issue("sess-1", "gym_1", "u1", T0, T1, "GF-ABC123")
        b = issuer.issue("sess-1", "gym_1", "u1", T0, T1, "GF-ABC123")
        assert a == b
        assert len(a.checksum) == 16

    def test_verify_accepts_issued_token(self, issuer, token):
        """A freshly issued token verifies."""
        assert issuer.verify(token)

    def test_window_change_changes_checksum(self, issuer, token):
        """A re-issued token with a wider window is a different value."""
        wider = issuer.issue("sess-1", "gym_1", "u1", T0, T1 + timedelta(minutes=30), "GF-ABC123")
        assert wider.checksum != token.checksum
        assert wider.session_id == token.session_id

    def test_secret_keys_the_checksum(self, token):
        """With a secret the checksum is an HMAC, so plain tokens fail."""
        keyed = TokenIssuer(secret="s3cret")
        assert not keyed.verify(token)
        assert keyed.verify(keyed.issue("sess-1", "gym_1", "u1", T0, T1, "GF-ABC123"))

    def test_checksum_length_configurable(self):
        """The checksum length follows the issuer setting."""
        assert len(TokenIssuer(checksum_length=32).issue("s", "l", "u", T0, T1, "r").checksum) == 32

    def test_separator_in_field_rejected(self, issuer):
        """Fields containing the separator would make the digest ambiguous."""
        with pytest.raises(ValidationError):
            issuer.issue("sess|1", "gym_1", "u1", T0, T1, "GF-ABC123")

    def test_invalid_window_rejected(self, issuer):
        """An end before the start is INVALID_WINDOW."""
        with pytest.raises(ValidationError) as exc:
            issuer.issue("sess-1", "gym_1", "u1", T1, T0, "GF-ABC123")
        assert exc.value.code == ErrorCode.INVALID_WINDOW


class TestWireFormat:
    def test_round_trip(self, issuer, token):
        """Decoding an encoded token gives equal fields that still verify."""
        decoded = issuer.deserialize(issuer.serialize(token))
        assert decoded == token
        assert issuer.verify(decoded)

    def test_compact_json(self, token):
        """The wire form has no spaces and Unix-second bounds."""
        wire = serialize_token(token)
        assert " " not in wire
        assert json.loads(wire)["ws"] == int(T0.timestamp())

    def test_non_utc_window_round_trips(self, issuer):
        """Windows given in another offset decode to the same instants."""
        cet = timezone(timedelta(hours=1))
        token = issuer.issue("s", "l", "u", T0.astimezone(cet), T1.astimezone(cet), "r")
        decoded = deserialize_token(serialize_token(token))
        assert decoded.window_start == T0
        assert issuer.verify(decoded)

    @pytest.mark.parametrize(
        "key,value",
        [
            ("sid", "sess-2"),
            ("lid", "gym_2"),
            ("uid", "u2"),
            ("ref", "GF-ZZZ999"),
            ("ws", int(T0.timestamp()) - 60),
            ("we", int(T1.timestamp()) + 60),
            ("cs", "0" * 16),
            ("cs", "é" * 16),
        ],
    )
    def test_tampering_any_field_fails_verify(self, issuer, token, key, value):
        """Changing a single field on the wire breaks verification."""
        payload = json.loads(issuer.serialize(token))
        payload[key] = value
        tampered = issuer.deserialize(json.dumps(payload))
        assert not issuer.verify(tampered)

    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            "[]",
            '{"sid": "x"}',
            None,
            '{"cs":"a","lid":"l","ref":"r","sid":"s","uid":"u","we":"1","ws":0}',
            '{"cs":"a","lid":"l","ref":"r","sid":"s","uid":"","we":1,"ws":0}',
            '{"cs":"a","lid":"l","ref":"r","sid":"s","uid":"u","we":true,"ws":0}',
        ],
    )
    def test_malformed_input_rejected(self, raw):
        """Malformed wire tokens are MALFORMED_TOKEN."""
        with pytest.raises(ValidationError) as exc:
            deserialize_token(raw)
        assert exc.value.code == ErrorCode.MALFORMED_TOKEN


class TestTimePredicates:
    def test_within_window(self, issuer, token):
        """Window predicates use a half-open interval."""
        assert issuer.is_within_window(token, T0)
        assert not issuer.is_within_window(token, T1)
        assert issuer.is_not_started(token, T0 - timedelta(seconds=1))

    def test_expired(self, issuer, token):
        """A token expires exactly at the window end."""
        assert not issuer.is_expired(token, T1 - timedelta(seconds=1))
        assert issuer.is_expired(token, T1)

    def test_remaining_minutes(self, issuer, token):
        """Remaining minutes round down and never go negative."""
        assert issuer.remaining_minutes(token, T0 + timedelta(minutes=20, seconds=30)) == 39
        assert issuer.remaining_minutes(token, T1 + timedelta(hours=1)) == 0

    def test_verify_ignores_time(self, issuer, token):
        """Integrity does not depend on the clock."""
        assert issuer.is_expired(token, T1 + timedelta(days=1))
        assert issuer.verify(token)
