import logging
from typing import Any, Dict, List, Optional

import requests

from identity import (
    ClientConfiguration,
    ErrorKind,
    IdentityError,
    InvalidCodeError,
    InvalidIdentifierError,
    InvalidPasswordError,
    NetworkError,
    UnverifiedEmailError,
)
from use_cases import deep_links
from use_cases.flow_models import Identifier, IdentifierStatus, Terms, User

log = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10

ERROR_CODES = {
    "invalid_identifier": InvalidIdentifierError,
    "invalid_password": InvalidPasswordError,
    "invalid_code": InvalidCodeError,
    "unverified_email": UnverifiedEmailError,
}


class IdentityClient:
    """Blocking HTTP client for the identity backend.

    Every call either returns a value or raises an ``IdentityError``. The flow
    engine never calls this directly from the loop; interactors run it in the
    loop's executor.
    """

    def __init__(self, client_configuration: ClientConfiguration, session: Optional[requests.Session] = None):
        self.client_configuration = client_configuration
        self.current_user: Optional[User] = None
        self._session = session or requests.Session()
        self._tokens: Dict[str, str] = {}

    # --- transport ---

    def _url(self, path: str) -> str:
        return f"{self.client_configuration.server_url}{path}"

    def _headers(self) -> Dict[str, str]:
        headers = {"X-Client-Id": self.client_configuration.client_id}
        access_token = self._tokens.get("access_token")
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            resp = self._session.request(
                method,
                self._url(path),
                headers=self._headers(),
                timeout=REQUEST_TIMEOUT,
                **kwargs,
            )
        except requests.RequestException as e:
            log.error(f"Network error calling {path}: {e}")
            raise NetworkError(str(e), title="No connection") from e

        if resp.status_code in (200, 201):
            return resp.json() if resp.content else {}
        if resp.status_code == 204:
            return {}

        raise self._error_from_response(path, resp)

    def _error_from_response(self, path: str, resp) -> IdentityError:
        try:
            body = resp.json().get("error", {})
        except ValueError:
            body = {}
        code = body.get("code", "")
        description = body.get("description") or resp.text

        error_cls = ERROR_CODES.get(code)
        if error_cls is not None:
            return error_cls(description)
        if resp.status_code == 429:
            return IdentityError(description, title="Too many attempts", kind=ErrorKind.RATE_LIMITED)
        if resp.status_code == 400:
            return InvalidIdentifierError(description)
        if resp.status_code in (401, 403):
            return InvalidPasswordError(description)
        if resp.status_code >= 500:
            log.error(f"Identity backend error on {path}: {resp.status_code} {resp.text}")
            return NetworkError(description, title="Service unavailable")
        return IdentityError(description)

    def _user_from_token(self, payload: Dict[str, Any], persist_user: bool) -> User:
        self._tokens = {
            "access_token": payload.get("access_token", ""),
            "refresh_token": payload.get("refresh_token", ""),
        }
        user = User(
            uuid=payload.get("user_uuid", ""),
            user_id=payload.get("user_id"),
            email=payload.get("email"),
            persistent=persist_user,
        )
        self.current_user = user
        log.info(f"User {user.uuid} logged in (persistent={persist_user})")
        return user

    # --- identifier ---

    def fetch_status(self, identifier: Identifier) -> IdentifierStatus:
        data = self._request(
            "GET",
            "/api/identity/status",
            params={"identifier": identifier.value, "type": identifier.type.value},
        )
        return IdentifierStatus(available=bool(data.get("available")))

    # --- password ---

    def login_with_password(self, identifier: Identifier, password: str, persist_user: bool, scopes=()) -> User:
        data = self._request(
            "POST",
            "/oauth/token",
            data={
                "grant_type": "password",
                "username": identifier.value,
                "password": password,
                "client_id": self.client_configuration.client_id,
                "client_secret": self.client_configuration.client_secret,
                "scope": " ".join(scopes),
            },
        )
        return self._user_from_token(data, persist_user)

    def signup_with_password(self, identifier: Identifier, password: str, persist_user: bool, scopes=()) -> None:
        self._request(
            "POST",
            "/api/identity/signup",
            json={
                "email": identifier.value,
                "password": password,
                "redirect_uri": f"{self.client_configuration.app_url_scheme}://{deep_links.VALIDATE_EMAIL_PATH}"
                f"?{deep_links.PERSIST_USER_KEY}={'true' if persist_user else 'false'}",
                "scope": " ".join(scopes),
            },
        )

    def request_password_reset(self, identifier: Identifier) -> None:
        self._request(
            "POST",
            "/api/identity/password-reset",
            json={
                "email": identifier.value,
                "redirect_uri": f"{self.client_configuration.app_url_scheme}://{deep_links.FORGOT_PASSWORD_PATH}",
            },
        )

    # --- passwordless ---

    def send_code(self, identifier: Identifier) -> str:
        data = self._request(
            "POST",
            "/api/passwordless/start",
            json={"identifier": identifier.value, "connection": identifier.type.value},
        )
        return data.get("auth_id", "")

    def resend_code(self, identifier: Identifier) -> None:
        self._request(
            "POST",
            "/api/passwordless/resend",
            json={"identifier": identifier.value, "connection": identifier.type.value},
        )

    def validate_one_time_code(self, identifier: Identifier, code: str, persist_user: bool, scopes=()) -> User:
        data = self._request(
            "POST",
            "/api/passwordless/verify",
            json={
                "identifier": identifier.value,
                "connection": identifier.type.value,
                "code": code,
                "scope": " ".join(scopes),
            },
        )
        return self._user_from_token(data, persist_user)

    def validate_auth_code(self, code: str, persist_user: bool) -> User:
        data = self._request(
            "POST",
            "/oauth/token",
            data={
                "grant_type": "authorization_code",
                "code": code,
                "client_id": self.client_configuration.client_id,
                "client_secret": self.client_configuration.client_secret,
            },
        )
        return self._user_from_token(data, persist_user)

    # --- agreements and profile ---

    def agreements_status(self, user: User) -> bool:
        data = self._request("GET", f"/api/users/{user.uuid}/agreements")
        return bool(data.get("accepted"))

    def accept_agreements(self, user: User) -> None:
        self._request("POST", f"/api/users/{user.uuid}/agreements/accept")

    def fetch_terms(self) -> Terms:
        data = self._request("GET", "/api/terms")
        return Terms(platform_url=data.get("platform_url", ""), summary=data.get("summary", ""))

    def required_fields(self, user: User) -> List[str]:
        data = self._request("GET", f"/api/users/{user.uuid}/required-fields")
        return list(data.get("fields", []))

    def update_profile(self, user: User, values: Dict[str, str]) -> None:
        self._request("POST", f"/api/users/{user.uuid}/profile", json=values)

    def logout(self) -> None:
        if self.current_user is not None:
            log.info(f"Logging out user {self.current_user.uuid}")
        self.current_user = None
        self._tokens = {}

    def parse_redirect_url(self, url: str) -> Optional[deep_links.RedirectPayload]:
        return deep_links.parse(url, self.client_configuration)
