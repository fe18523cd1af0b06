import logging

import streamlit as st

import identity
from infrastructure.identity.identity_client import IdentityClient
from infrastructure.repositories.sqlite_tracking_repository import SQLiteTrackingRepository
from use_cases.flow_context import FlowContext
from use_cases.flow_models import Disposition, FlowVariant, UIResultStatus
from use_cases.identity_flow import IdentityFlow

"""
SESSION STATE CONTRACT

Этот файл управляет состоянием identity-флоу в сессии Streamlit.

Ключи st.session_state:

identity_context: FlowContext | None
    event loop и слот активного флоу для этой сессии
    default: None
    owner: session_manager

identity_client: IdentityClient | None
    клиент identity-бэкенда (current_user, токены)
    default: None
    owner: session_manager

identity_flow: IdentityFlow | None
    оркестратор входа/регистрации
    default: None
    owner: session_manager

identity_container: NavigationStack | None
    показанный стек экранов (None, если флоу не показан)
    default: None
    owner: StreamlitSurface

identity_help_url: str | None
    ссылка на справку, открытая с экрана ввода идентификатора
    default: None
    owner: StreamlitSurface

auth_user: User | None
    текущий авторизованный пользователь
    default: None
    owner: SessionDelegate

identity_notice: str | None
    сообщение после завершения флоу
    default: None
    owner: SessionDelegate

handled_redirect: str | None
    последний обработанный deep link, чтобы не обрабатывать его на каждом rerun
    default: None
    owner: app
"""

log = logging.getLogger(__name__)

TRACKING_DB = "identity_events.db"


class StreamlitSurface:
    """Presentation surface: the presented container lives in session state."""

    def present(self, container, animated=True):
        st.session_state.identity_container = container

    def dismiss(self, animated=True, completion=None):
        st.session_state.identity_container = None
        if completion is not None:
            completion()

    def present_url(self, url):
        st.session_state.identity_help_url = url


class SessionDelegate:
    def __init__(self, allow_signup: bool = True):
        self.allow_signup = allow_signup

    def will_present(self, flow_variant):
        if flow_variant == FlowVariant.SIGNUP and not self.allow_signup:
            return Disposition.show_error("Регистрация закрыта", "Новые аккаунты сейчас не создаются.")
        return Disposition.cont()

    def did_finish(self, result):
        if result.status == UIResultStatus.COMPLETED:
            st.session_state.auth_user = result.user
            st.session_state.identity_notice = "Вход выполнен."
        else:
            st.session_state.identity_notice = "Вход отменён."


def init_session_state():
    for key in (
        "identity_context",
        "identity_client",
        "identity_flow",
        "identity_container",
        "identity_help_url",
        "auth_user",
        "identity_notice",
        "handled_redirect",
    ):
        if key not in st.session_state:
            st.session_state[key] = None


def get_flow_context() -> FlowContext:
    init_session_state()
    if st.session_state.identity_context is None:
        st.session_state.identity_context = FlowContext()
    return st.session_state.identity_context


def get_identity_client() -> IdentityClient:
    init_session_state()
    if st.session_state.identity_client is None:
        st.session_state.identity_client = IdentityClient(identity.load_client_configuration())
    return st.session_state.identity_client


def get_identity_flow() -> IdentityFlow:
    init_session_state()
    if st.session_state.identity_flow is None:
        client = get_identity_client()
        configuration = identity.load_ui_configuration(tracker=SQLiteTrackingRepository(TRACKING_DB))
        allow_signup = (identity.get_secret("IDENTITY_ALLOW_SIGNUP") or "true").lower() == "true"
        st.session_state.identity_flow = IdentityFlow(
            configuration,
            client,
            get_flow_context(),
            delegate=SessionDelegate(allow_signup=allow_signup),
        )
    return st.session_state.identity_flow


def send_action(screen, action, **payload):
    """Forward a user action to the flow and wait for the work it started."""
    screen.send(action, **payload)
    get_flow_context().run_pending()


def logout():
    client = st.session_state.get("identity_client")
    if client is not None:
        client.logout()
    st.session_state.auth_user = None
    st.rerun()
