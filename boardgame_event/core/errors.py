"""
Error codes, user-facing messages & the API exception.

Codes are stable English constants the frontend branches on; the
messages are the German strings shown to the user.  The two are kept as
an explicit pair — never derive one from the other.
"""

import enum


class AccountErrorCode(str, enum.Enum):
    EMAIL_EXISTS = "EMAIL_EXISTS"
    INVALID_EMAIL = "INVALID_EMAIL"
    PASSWORD_TOO_SHORT = "PASSWORD_TOO_SHORT"
    PASSWORD_MISSING_LETTER = "PASSWORD_MISSING_LETTER"
    PASSWORD_MISSING_NUMBER = "PASSWORD_MISSING_NUMBER"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    ACCOUNT_DEACTIVATED = "ACCOUNT_DEACTIVATED"
    WRONG_PASSWORD = "WRONG_PASSWORD"
    INVALID_TOKEN = "INVALID_TOKEN"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    SELF_DEACTIVATION = "SELF_DEACTIVATION"


ACCOUNT_ERROR_MESSAGES: dict[AccountErrorCode, str] = {
    AccountErrorCode.EMAIL_EXISTS: "Diese E-Mail-Adresse ist bereits registriert.",
    AccountErrorCode.INVALID_EMAIL: "Bitte eine gültige E-Mail-Adresse eingeben.",
    AccountErrorCode.PASSWORD_TOO_SHORT: "Das Passwort muss mindestens 8 Zeichen lang sein.",
    AccountErrorCode.PASSWORD_MISSING_LETTER: "Das Passwort muss mindestens einen Buchstaben enthalten.",
    AccountErrorCode.PASSWORD_MISSING_NUMBER: "Das Passwort muss mindestens eine Zahl enthalten.",
    AccountErrorCode.INVALID_CREDENTIALS: "E-Mail oder Passwort ist falsch.",
    AccountErrorCode.ACCOUNT_DEACTIVATED: "Dieses Konto wurde deaktiviert.",
    AccountErrorCode.WRONG_PASSWORD: "Das aktuelle Passwort ist falsch.",
    AccountErrorCode.INVALID_TOKEN: "Sitzung abgelaufen. Bitte erneut anmelden.",
    AccountErrorCode.NOT_AUTHORIZED: "Keine Berechtigung für diese Aktion.",
    AccountErrorCode.ACCOUNT_NOT_FOUND: "Konto nicht gefunden.",
    AccountErrorCode.SESSION_NOT_FOUND: "Sitzung nicht gefunden.",
    AccountErrorCode.SELF_DEACTIVATION: "Administratoren können ihr eigenes Konto nicht deaktivieren.",
}

# ── Route-level codes (not produced by the services) ────────────────
INVALID_EVENT_TOKEN = "INVALID_EVENT_TOKEN"
MISSING_FIELDS = "MISSING_FIELDS"
VALIDATION_ERROR = "VALIDATION_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"
INTERNAL_ERROR_MESSAGE = "Ein Fehler ist aufgetreten. Bitte später erneut versuchen."


class APIError(Exception):
    """An error response: machine-readable code, message and HTTP status.

    Rendered by the app-level handler as ``{"error": code, "message": message}``.
    """

    def __init__(self, code: str, message: str, status_code: int = 400) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def for_account(cls, code: AccountErrorCode, status_code: int) -> "APIError":
        return cls(code.value, ACCOUNT_ERROR_MESSAGES[code], status_code)
