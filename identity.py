import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import streamlit as st


class ErrorKind(str, Enum):
    NETWORK = "NETWORK"
    INVALID_IDENTIFIER = "INVALID_IDENTIFIER"
    INVALID_PASSWORD = "INVALID_PASSWORD"
    INVALID_CODE = "INVALID_CODE"
    REQUIRED_FIELD = "REQUIRED_FIELD"
    UNVERIFIED_EMAIL = "UNVERIFIED_EMAIL"
    RATE_LIMITED = "RATE_LIMITED"
    UNEXPECTED = "UNEXPECTED"


class IdentityError(Exception):
    """Recoverable failure reported by the identity backend or local validation."""

    kind = ErrorKind.UNEXPECTED

    def __init__(self, message: str = "", *, title: Optional[str] = None, description: Optional[str] = None, kind: Optional[ErrorKind] = None):
        super().__init__(message or description or title or self.__class__.__name__)
        self.title = title
        self.description = description or message
        if kind is not None:
            self.kind = kind


class NetworkError(IdentityError):
    kind = ErrorKind.NETWORK


class InvalidIdentifierError(IdentityError):
    kind = ErrorKind.INVALID_IDENTIFIER


class InvalidPasswordError(IdentityError):
    kind = ErrorKind.INVALID_PASSWORD


class InvalidCodeError(IdentityError):
    kind = ErrorKind.INVALID_CODE


class RequiredFieldError(IdentityError):
    kind = ErrorKind.REQUIRED_FIELD

    def __init__(self, field: str, reason: str):
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason


class UnverifiedEmailError(IdentityError):
    kind = ErrorKind.UNVERIFIED_EMAIL


class PreconditionFailure(Exception):
    """Caller-side logic bug. Never caught inside the flow engine."""


ENVIRONMENTS = ("development", "preproduction", "production")


@dataclass(frozen=True)
class ClientConfiguration:
    environment: str
    client_id: str
    client_secret: str
    app_url_scheme: str
    server_url: str


@dataclass(frozen=True)
class IdentityUIConfiguration:
    client_configuration: ClientConfiguration
    is_cancelable: bool = True
    tracker: Any = None
    help_url: Optional[str] = None


def get_secret(key):
    try:
        value = st.secrets.get(key)
    except FileNotFoundError:
        value = None
    return value or os.getenv(key)


def load_client_configuration() -> ClientConfiguration:
    environment = get_secret("IDENTITY_ENV") or "development"
    if environment not in ENVIRONMENTS:
        raise PreconditionFailure(f"Unknown identity environment: {environment}")

    scheme = get_secret("IDENTITY_URL_SCHEME")
    client_id = get_secret("IDENTITY_CLIENT_ID")
    if not scheme or not client_id:
        raise PreconditionFailure("IDENTITY_CLIENT_ID and IDENTITY_URL_SCHEME must be configured")

    return ClientConfiguration(
        environment=environment,
        client_id=client_id,
        client_secret=get_secret("IDENTITY_CLIENT_SECRET") or "",
        app_url_scheme=scheme,
        server_url=(get_secret("IDENTITY_SERVER_URL") or "http://localhost:8080").rstrip("/"),
    )


def load_ui_configuration(tracker=None) -> IdentityUIConfiguration:
    cancelable = (get_secret("IDENTITY_CANCELABLE") or "true").lower() == "true"
    return IdentityUIConfiguration(
        client_configuration=load_client_configuration(),
        is_cancelable=cancelable,
        tracker=tracker,
        help_url=get_secret("IDENTITY_HELP_URL"),
    )
