"""Deep-link parsing: redirect URL -> Route (resume a flow) or LaunchPayload (headless)."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
from urllib.parse import parse_qs, urlsplit

from use_cases.flow_models import (
    AfterForgotPassword,
    CodeAfterSignup,
    CodeAfterUnvalidatedLogin,
    EnterPassword,
    LaunchPayload,
    Login,
    Route,
    ValidateAuthCode,
)

LOGIN_PATH = "login"
FORGOT_PASSWORD_PATH = "forgot-password"
VALIDATE_EMAIL_PATH = "validate-email"
VALIDATE_LOGIN_PATH = "validate-login"

CODE_KEY = "code"
EMAIL_KEY = "email"
SCOPES_KEY = "scopes"
PERSIST_USER_KEY = "persist-user"


@dataclass(frozen=True)
class RedirectPayload:
    path: str
    query: Dict[str, List[str]] = field(default_factory=dict)

    def first(self, key: str) -> Optional[str]:
        values = self.query.get(key)
        return values[0] if values else None


def parse(url: str, client_config) -> Optional[RedirectPayload]:
    """Return the payload of ``url`` or None when it is not one of our redirects."""
    if not url:
        return None
    parts = urlsplit(url.strip())
    if not parts.scheme or parts.scheme.lower() != client_config.app_url_scheme.lower():
        return None
    path = f"{parts.netloc}/{parts.path}".strip("/")
    return RedirectPayload(path=path, query=parse_qs(parts.query))


def _persist_user(payload: RedirectPayload) -> bool:
    return (payload.first(PERSIST_USER_KEY) or "").lower() == "true"


def route_from_payload(payload: RedirectPayload) -> Optional[Route]:
    if payload.path == LOGIN_PATH:
        return Login()

    if payload.path == FORGOT_PASSWORD_PATH:
        email = payload.first(EMAIL_KEY)
        if not email:
            return Login()
        scopes = tuple((payload.first(SCOPES_KEY) or "").split())
        return EnterPassword(identifier=email, scopes=scopes)

    code = payload.first(CODE_KEY)
    if payload.path == VALIDATE_EMAIL_PATH and code:
        return ValidateAuthCode(code=code, persist_user=_persist_user(payload))
    if payload.path == VALIDATE_LOGIN_PATH and code:
        return ValidateAuthCode(code=code, persist_user=False)
    return None


def launch_payload_from_payload(payload: RedirectPayload) -> Optional[LaunchPayload]:
    if payload.path == FORGOT_PASSWORD_PATH:
        return AfterForgotPassword()

    code = payload.first(CODE_KEY)
    if not code:
        return None
    if payload.path == VALIDATE_EMAIL_PATH:
        return CodeAfterSignup(code=code, should_persist_user=_persist_user(payload))
    if payload.path == VALIDATE_LOGIN_PATH:
        return CodeAfterUnvalidatedLogin(code=code)
    return None
