import logging

import pytest

from fakes import USER
from identity import ClientConfiguration, IdentityUIConfiguration, NetworkError, PreconditionFailure
from use_cases.flow_models import Terms
from use_cases.terms_flow import TermsFlow, ensure_acceptance_of_new_terms, present_terms

TERMS = Terms(platform_url="https://example.com/terms", summary="Updated")


def test_no_check_without_logged_in_user(manager, context):
    assert ensure_acceptance_of_new_terms(manager, context, lambda *_: None) is None
    assert manager.calls == []


def test_new_terms_are_reported(manager, context):
    manager.current_user = USER
    manager.results["agreements_status"] = False
    seen = []

    ensure_acceptance_of_new_terms(manager, context, lambda terms, user: seen.append((terms, user)))
    context.run_pending()

    assert seen == [(manager.results["fetch_terms"], USER)]


def test_accepted_terms_are_not_reported(manager, context):
    manager.current_user = USER
    seen = []

    ensure_acceptance_of_new_terms(manager, context, lambda terms, user: seen.append(terms))
    context.run_pending()

    assert seen == []
    assert manager.called("fetch_terms") == []


def test_check_failure_is_only_logged(manager, context, caplog):
    manager.current_user = USER
    manager.results["agreements_status"] = NetworkError("down")

    with caplog.at_level(logging.ERROR):
        ensure_acceptance_of_new_terms(manager, context, lambda *_: pytest.fail("should not be called"))
        context.run_pending()

    assert "Error attempting to fetch availability of new terms" in caplog.text


def test_mismatching_configuration_raises(manager, context):
    other = ClientConfiguration("production", "other", "", "myapp", "http://identity.test")
    with pytest.raises(PreconditionFailure):
        TermsFlow(TERMS, USER, IdentityUIConfiguration(other), manager, context)


def test_accept_dismisses_with_true(ui_config, manager, context, surface):
    results = []
    flow = present_terms(TERMS, USER, surface, ui_config, manager, context, results.append)
    assert surface.presented == [flow.navigation]

    flow.navigation.top.send("accept")
    context.run_pending()

    assert manager.called("accept_agreements") == [(USER,)]
    assert results == [True]
    assert surface.dismissed == 1


def test_accept_failure_keeps_terms_on_screen(ui_config, manager, context, surface):
    manager.results["accept_agreements"] = NetworkError("down")
    results = []
    flow = present_terms(TERMS, USER, surface, ui_config, manager, context, results.append)
    screen = flow.navigation.top

    screen.send("accept")
    context.run_pending()

    assert screen.inline_error["description"] == "down"
    assert results == []


def test_cancel_logs_out(ui_config, manager, context, surface):
    results = []
    flow = present_terms(TERMS, USER, surface, ui_config, manager, context, results.append)

    flow.navigation.top.send("cancel")

    assert ("logout", ()) in manager.calls
    assert results == [False]
