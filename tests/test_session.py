from unittest.mock import MagicMock, patch

import streamlit as st

from fakes import USER
from use_cases.flow_models import Disposition, FlowVariant, IdentityUIResult, UIResultStatus
from utils import session_manager


def test_init_session_state():
    st.session_state.clear()
    session_manager.init_session_state()
    assert st.session_state.auth_user is None
    assert st.session_state.identity_container is None
    assert st.session_state.handled_redirect is None


def test_surface_present_and_dismiss():
    st.session_state.clear()
    session_manager.init_session_state()
    surface = session_manager.StreamlitSurface()
    container = object()
    done = MagicMock()

    surface.present(container)
    assert st.session_state.identity_container is container

    surface.dismiss(completion=done)
    assert st.session_state.identity_container is None
    done.assert_called_once()


def test_delegate_blocks_signup_when_closed():
    delegate = session_manager.SessionDelegate(allow_signup=False)
    assert delegate.will_present(FlowVariant.SIGNUP).action == "SHOW_ERROR"
    assert delegate.will_present(FlowVariant.SIGNIN) == Disposition.cont()


def test_delegate_stores_user_on_completion():
    st.session_state.clear()
    session_manager.init_session_state()
    delegate = session_manager.SessionDelegate()

    delegate.did_finish(IdentityUIResult(UIResultStatus.COMPLETED, USER))

    assert st.session_state.auth_user == USER
    assert st.session_state.identity_notice


def test_send_action_drives_pending_work():
    st.session_state.clear()
    context = MagicMock()
    st.session_state.identity_context = context
    screen = MagicMock()

    session_manager.send_action(screen, "enter", identifier="a@example.com")

    screen.send.assert_called_once_with("enter", identifier="a@example.com")
    context.run_pending.assert_called_once()


@patch("streamlit.rerun")
def test_logout(mock_rerun):
    st.session_state.clear()
    session_manager.init_session_state()
    client = MagicMock()
    st.session_state.identity_client = client
    st.session_state.auth_user = USER

    session_manager.logout()

    client.logout.assert_called_once()
    mock_rerun.assert_called_once()
    assert st.session_state.auth_user is None
