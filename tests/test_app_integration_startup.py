import sys
import importlib
from unittest.mock import patch, MagicMock
import pytest
import streamlit as st

from fakes import USER
from use_cases.bootstrap import StartupResult
from use_cases.auth_flow import AuthFlowResult


@patch("use_cases.auth_flow.open_deep_link")
@patch("utils.session_manager.get_identity_flow")
@patch("use_cases.bootstrap.run_startup")
@patch("use_cases.auth_flow.ensure_authenticated_session")
def test_app_startup_headless_integration(
    mock_ensure_auth,
    mock_run_startup,
    mock_get_flow,
    mock_open_link,
):
    st.session_state.clear()

    from utils import session_manager

    def fake_startup(_redirect=None):
        session_manager.init_session_state()
        st.session_state.auth_user = USER
        return StartupResult(status="CONTINUE", planned_steps=())

    mock_run_startup.side_effect = fake_startup
    mock_get_flow.return_value = MagicMock()
    mock_ensure_auth.return_value = AuthFlowResult(status="CONTINUE", user_id="42", reason="authenticated")

    # Force re-importing app.py
    if "app" in sys.modules:
        del sys.modules["app"]

    try:
        importlib.import_module("app")
    except Exception as e:
        pytest.fail(f"app.py import failed with error: {e}")

    mock_run_startup.assert_called_once()
    mock_ensure_auth.assert_called_once()
    # No redirect in the query string
    mock_open_link.assert_not_called()
