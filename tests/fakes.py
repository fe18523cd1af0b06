from use_cases import deep_links
from use_cases.flow_models import IdentifierStatus, Terms, User

USER = User(uuid="u-1", user_id="42", email="user@example.com", persistent=True)


class FakeIdentityManager:
    """Synchronous stand-in for IdentityClient.

    ``results[method]`` is returned, or raised when it is an exception.
    Every call is recorded in ``calls`` as ``(method, args)``.
    """

    def __init__(self, client_configuration):
        self.client_configuration = client_configuration
        self.current_user = None
        self.calls = []
        self.results = {
            "fetch_status": IdentifierStatus(available=False),
            "login_with_password": USER,
            "signup_with_password": None,
            "request_password_reset": None,
            "send_code": "auth-1",
            "resend_code": None,
            "validate_one_time_code": USER,
            "validate_auth_code": USER,
            "agreements_status": True,
            "accept_agreements": None,
            "fetch_terms": Terms(platform_url="https://example.com/terms", summary="Be nice"),
            "required_fields": [],
            "update_profile": None,
        }

    def _answer(self, method, *args):
        self.calls.append((method, args))
        result = self.results.get(method)
        if isinstance(result, Exception):
            raise result
        return result

    def called(self, method):
        return [args for name, args in self.calls if name == method]

    def fetch_status(self, identifier):
        return self._answer("fetch_status", identifier)

    def login_with_password(self, identifier, password, persist_user, scopes=()):
        return self._answer("login_with_password", identifier, password, persist_user, scopes)

    def signup_with_password(self, identifier, password, persist_user, scopes=()):
        return self._answer("signup_with_password", identifier, password, persist_user, scopes)

    def request_password_reset(self, identifier):
        return self._answer("request_password_reset", identifier)

    def send_code(self, identifier):
        return self._answer("send_code", identifier)

    def resend_code(self, identifier):
        return self._answer("resend_code", identifier)

    def validate_one_time_code(self, identifier, code, persist_user, scopes=()):
        return self._answer("validate_one_time_code", identifier, code, persist_user, scopes)

    def validate_auth_code(self, code, persist_user):
        return self._answer("validate_auth_code", code, persist_user)

    def agreements_status(self, user):
        return self._answer("agreements_status", user)

    def accept_agreements(self, user):
        return self._answer("accept_agreements", user)

    def fetch_terms(self):
        return self._answer("fetch_terms")

    def required_fields(self, user):
        return self._answer("required_fields", user)

    def update_profile(self, user, values):
        return self._answer("update_profile", user, values)

    def logout(self):
        self.calls.append(("logout", ()))
        self.current_user = None

    def parse_redirect_url(self, url):
        return deep_links.parse(url, self.client_configuration)


class FakeSurface:
    def __init__(self):
        self.presented = []
        self.dismissed = 0
        self.urls = []

    def present(self, container, animated=True):
        self.presented.append(container)

    def dismiss(self, animated=True, completion=None):
        self.dismissed += 1
        if completion is not None:
            completion()

    def present_url(self, url):
        self.urls.append(url)
