import streamlit as st

from infrastructure.observability import setup_observability
setup_observability()

from use_cases import auth_flow, bootstrap
from use_cases.flow_models import LoginMethod
from utils import session_manager
from views import identity_view

# --- НАСТРОЙКИ СТРАНИЦЫ ---
st.set_page_config(page_title="Identity", layout="centered")

# Health Check (Basic load-balancer heartbeat)
if st.query_params.get("health") == "1":
    st.write({"status": "ok"})
    st.stop()

# --- STARTUP ORCHESTRATION ---
redirect_url = st.query_params.get("redirect")
startup_result = bootstrap.run_startup(redirect_url)
if startup_result.status == "STOP":
    st.stop()

flow = session_manager.get_identity_flow()
surface = session_manager.StreamlitSurface()

# --- DEEP LINK ---
# Каждый rerun видит те же query params, поэтому ссылку обрабатываем один раз.
if redirect_url and st.session_state.handled_redirect != redirect_url:
    st.session_state.handled_redirect = redirect_url

    def _on_link_user(user):
        st.session_state.auth_user = user
        st.session_state.identity_notice = "Почта подтверждена."

    auth_flow.open_deep_link(redirect_url, flow, surface=surface, on_user=_on_link_user)
    flow.context.run_pending()

if st.session_state.identity_notice:
    st.toast(st.session_state.identity_notice)
    st.session_state.identity_notice = None

# --- ПОКАЗАННЫЙ ФЛОУ (входа или новых условий) ---
container = st.session_state.identity_container
if container is not None:
    identity_view.render_identity_flow(container)
    st.stop()

# --- ВХОД / АВТОРИЗАЦИЯ ---
auth_result = auth_flow.ensure_authenticated_session()

if auth_result.status == "STOP":
    st.title("🔐 Вход")
    c1, c2, c3 = st.columns(3)
    login_method = None
    if c1.button("По почте", use_container_width=True):
        login_method = LoginMethod.email()
    if c2.button("По телефону", use_container_width=True):
        login_method = LoginMethod.phone()
    if c3.button("С паролем", type="primary", use_container_width=True):
        login_method = LoginMethod.password()
    if login_method is not None:
        flow.present_identity_process(surface, login_method, teaser_text="Войдите или создайте аккаунт")
        flow.context.run_pending()
        st.rerun()
    st.stop()

# === ГЛАВНЫЙ ИНТЕРФЕЙС ===
user = st.session_state.auth_user
st.title(f"👋 {user.email or user.user_id or user.uuid}")
st.caption(f"ID: {user.uuid}")

if st.button("Выйти", key="logout_btn", type="secondary"):
    session_manager.logout()
