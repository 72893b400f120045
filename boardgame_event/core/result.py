"""
Tagged results for service methods.

Services never raise for *expected* failures (wrong password, duplicate
email, foreign session ...).  They return ``Ok(value)`` or ``Err(...)``
and the controller decides what to send back — see ``unwrap``.
Infrastructure errors are still exceptions and propagate as-is.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from boardgame_event.core.errors import ACCOUNT_ERROR_MESSAGES, AccountErrorCode, APIError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    code: AccountErrorCode
    status_code: int
    message: str

    @classmethod
    def of(cls, code: AccountErrorCode, status_code: int = 400) -> "Err":
        return cls(code=code, status_code=status_code, message=ACCOUNT_ERROR_MESSAGES[code])


Result = Union[Ok[T], Err]


def unwrap(result: "Result[T]") -> T:
    """Return the Ok value, or raise the Err as an ``APIError``."""
    if isinstance(result, Err):
        raise APIError(result.code.value, result.message, result.status_code)
    return result.value
