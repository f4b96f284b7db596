"""Check-in token issuing and verification.

Integrity and time validity are kept apart: ``verify`` only recomputes
the checksum, while the window predicates only look at the clock. The
validators combine them to report precise rejection reasons.

Wire format: compact JSON with short keys and window bounds as Unix
seconds, e.g.::

    {"cs":"5c1f...","lid":"gym_1","ref":"GF-7KQ2ZD","sid":"...","uid":"u1","we":1767268800,"ws":1767265200}
"""

import hashlib
import hmac
import json
from datetime import datetime, timezone

from ticketing.domain import SessionWindow, Token
from ticketing.domain.errors import ErrorCode, ValidationError
from ticketing.domain.value_objects import is_strict_int

SEPARATOR = "|"

_TEXT_KEYS = {
    "sid": "session_id",
    "lid": "location_id",
    "uid": "user_id",
    "ref": "reference_code",
    "cs": "checksum",
}
_TIME_KEYS = {"ws": "window_start", "we": "window_end"}


def serialize_token(token: Token) -> str:
    payload: dict[str, object] = {
        wire: getattr(token, attr) for wire, attr in _TEXT_KEYS.items()
    }
    for wire, attr in _TIME_KEYS.items():
        payload[wire] = int(getattr(token, attr).timestamp())
    return json.dumps(payload, separators=(",", ":"), sort_keys=True)


def deserialize_token(raw: str) -> Token:
    """Decode a wire token. The checksum is carried over, not trusted.

    Raises:
        ValidationError: If the text is not a well-formed token.
    """
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError(ErrorCode.MALFORMED_TOKEN) from exc
    if not isinstance(payload, dict) or set(payload) != set(_TEXT_KEYS) | set(_TIME_KEYS):
        raise ValidationError(ErrorCode.MALFORMED_TOKEN)

    fields: dict[str, object] = {}
    for wire, attr in _TEXT_KEYS.items():
        value = payload[wire]
        if not isinstance(value, str) or not value:
            raise ValidationError(ErrorCode.MALFORMED_TOKEN)
        fields[attr] = value
    for wire, attr in _TIME_KEYS.items():
        value = payload[wire]
        if not is_strict_int(value):
            raise ValidationError(ErrorCode.MALFORMED_TOKEN)
        try:
            fields[attr] = datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise ValidationError(ErrorCode.MALFORMED_TOKEN) from exc
    return Token(**fields)


class TokenIssuer:
    """Builds and verifies tokens.

    The checksum is SHA-256 over the separator-joined fields, truncated to
    ``checksum_length`` hex characters. With a ``secret`` it becomes an
    HMAC, so tokens cannot be forged by someone who knows the format.
    """

    def __init__(self, secret: str = "", checksum_length: int = 16) -> None:
        self._secret = secret.encode("utf-8")
        self._checksum_length = checksum_length

    def issue(
        self,
        session_id: str,
        location_id: str,
        user_id: str,
        window_start: datetime,
        window_end: datetime,
        reference_code: str,
    ) -> Token:
        window = SessionWindow(
            start=window_start.astimezone(timezone.utc).replace(microsecond=0),
            end=window_end.astimezone(timezone.utc).replace(microsecond=0),
        )
        for value in (session_id, location_id, user_id, reference_code):
            if not isinstance(value, str) or not value or SEPARATOR in value:
                raise ValidationError(
                    ErrorCode.INVALID_INPUT,
                    f"Token fields must be non-empty and must not contain '{SEPARATOR}'",
                )
        checksum = self._checksum(
            session_id, location_id, user_id, window.start, window.end, reference_code
        )
        return Token(
            session_id=session_id,
            location_id=location_id,
            user_id=user_id,
            window_start=window.start,
            window_end=window.end,
            reference_code=reference_code,
            checksum=checksum,
        )

    def verify(self, token: Token) -> bool:
        expected = self._checksum(
            token.session_id,
            token.location_id,
            token.user_id,
            token.window_start,
            token.window_end,
            token.reference_code,
        )
        return hmac.compare_digest(expected.encode("utf-8"), token.checksum.encode("utf-8"))

    def serialize(self, token: Token) -> str:
        return serialize_token(token)

    def deserialize(self, raw: str) -> Token:
        return deserialize_token(raw)

    @staticmethod
    def is_within_window(token: Token, now: datetime) -> bool:
        return token.window_start <= now < token.window_end

    @staticmethod
    def is_expired(token: Token, now: datetime) -> bool:
        return now >= token.window_end

    @staticmethod
    def is_not_started(token: Token, now: datetime) -> bool:
        return now < token.window_start

    @staticmethod
    def remaining_minutes(token: Token, now: datetime) -> int:
        if now >= token.window_end:
            return 0
        return int((token.window_end - now).total_seconds() // 60)

    def _checksum(
        self,
        session_id: str,
        location_id: str,
        user_id: str,
        window_start: datetime,
        window_end: datetime,
        reference_code: str,
    ) -> str:
        canonical = SEPARATOR.join(
            [
                session_id,
                location_id,
                user_id,
                str(int(window_start.timestamp())),
                str(int(window_end.timestamp())),
                reference_code,
            ]
        ).encode("utf-8")
        if self._secret:
            digest = hmac.new(self._secret, canonical, hashlib.sha256).hexdigest()
        else:
            digest = hashlib.sha256(canonical).hexdigest()
        return digest[: self._checksum_length]
