from use_cases import deep_links
from use_cases.flow_models import (
    AfterForgotPassword,
    CodeAfterSignup,
    CodeAfterUnvalidatedLogin,
    EnterPassword,
    Login,
    ValidateAuthCode,
)


def route(url, client_config):
    return deep_links.route_from_payload(deep_links.parse(url, client_config))


def launch(url, client_config):
    return deep_links.launch_payload_from_payload(deep_links.parse(url, client_config))


def test_foreign_scheme_is_not_a_redirect(client_config):
    assert deep_links.parse("https://example.com/login", client_config) is None
    assert deep_links.parse("", client_config) is None


def test_scheme_match_is_case_insensitive(client_config):
    payload = deep_links.parse("MyApp://login", client_config)
    assert payload.path == "login"


def test_login_route(client_config):
    assert route("myapp://login", client_config) == Login()


def test_forgot_password_with_email_and_scopes(client_config):
    url = "myapp://forgot-password?email=a%40example.com&scopes=profile%20openid"
    assert route(url, client_config) == EnterPassword("a@example.com", ("profile", "openid"))
    assert launch(url, client_config) == AfterForgotPassword()


def test_forgot_password_without_email_falls_back_to_login(client_config):
    assert route("myapp://forgot-password", client_config) == Login()


def test_validate_email_honours_persist_user(client_config):
    url = "myapp://validate-email?code=abc&persist-user=true"
    assert route(url, client_config) == ValidateAuthCode("abc", True)
    assert launch(url, client_config) == CodeAfterSignup("abc", True)


def test_validate_login_never_persists(client_config):
    url = "myapp://validate-login?code=xyz&persist-user=true"
    assert route(url, client_config) == ValidateAuthCode("xyz", False)
    assert launch(url, client_config) == CodeAfterUnvalidatedLogin("xyz")


def test_code_links_without_code_are_ignored(client_config):
    assert route("myapp://validate-email", client_config) is None
    assert launch("myapp://validate-login", client_config) is None


def test_unknown_path(client_config):
    assert route("myapp://settings", client_config) is None
    assert launch("myapp://login", client_config) is None
