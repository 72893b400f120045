"""
Event token service — stateless bearer tokens scoped to one event.

Event tokens are signed with the same secret as account tokens.  What
keeps an account token from being replayed here is the mandatory
``type: "event"`` claim, checked before any other claim is trusted.

There is no server-side record, so an event token cannot be revoked
before it expires.  ``check`` reports *why* a token failed so the
gate can word its message without decoding the token twice.
"""

import enum
from dataclasses import dataclass

from jose import ExpiredSignatureError, JWTError
from jose.exceptions import JWSError

from boardgame_event.core.security import decode_token, encode_token

EVENT_TOKEN_TYPE = "event"


class EventTokenFailure(str, enum.Enum):
    EXPIRED = "expired"
    BAD_SIGNATURE = "bad_signature"
    WRONG_TYPE = "wrong_type"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class EventTokenPayload:
    event_id: str
    type: str = EVENT_TOKEN_TYPE


@dataclass(frozen=True)
class EventTokenCheck:
    payload: EventTokenPayload | None
    failure: EventTokenFailure | None = None

    @property
    def ok(self) -> bool:
        return self.payload is not None


class EventTokenService:
    def __init__(self, secret: str, algorithm: str, expires_in: int) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self.expires_in = expires_in

    def sign(self, event_id: str) -> str:
        """Sign ``{eventId, type: "event"}``, expiring after ``expires_in`` seconds."""
        return encode_token(
            {"eventId": event_id, "type": EVENT_TOKEN_TYPE},
            secret=self._secret,
            algorithm=self._algorithm,
            expires_in=self.expires_in,
        )

    def check(self, token: str) -> EventTokenCheck:
        """Verify signature, then expiry, then the type discriminator."""
        try:
            claims = decode_token(token, secret=self._secret, algorithm=self._algorithm)
        except ExpiredSignatureError:
            return EventTokenCheck(None, EventTokenFailure.EXPIRED)
        except JWTError as exc:
            failure = (
                EventTokenFailure.BAD_SIGNATURE
                if _is_signature_failure(exc)
                else EventTokenFailure.MALFORMED
            )
            return EventTokenCheck(None, failure)

        if claims.get("type") != EVENT_TOKEN_TYPE:
            return EventTokenCheck(None, EventTokenFailure.WRONG_TYPE)

        event_id = claims.get("eventId")
        if not isinstance(event_id, str) or not event_id:
            return EventTokenCheck(None, EventTokenFailure.MALFORMED)

        return EventTokenCheck(EventTokenPayload(event_id=event_id))

    def verify(self, token: str) -> EventTokenPayload | None:
        """Decoded payload, or None on any failure.  Never raises."""
        return self.check(token).payload


def _is_signature_failure(exc: JWTError) -> bool:
    # jose reports a bad signature as JWTError("Signature verification failed.")
    # wrapping a JWSError; structural problems carry other messages.
    cause = exc.__cause__ or exc.__context__
    if isinstance(cause, JWSError):
        return "signature" in str(cause).lower()
    return "signature" in str(exc).lower()
