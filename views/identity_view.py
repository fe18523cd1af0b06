import streamlit as st

from use_cases.required_fields import SupportedRequiredField
from utils import session_manager

FIELD_LABELS = {
    SupportedRequiredField.GIVEN_NAME.value: "Имя *",
    SupportedRequiredField.FAMILY_NAME.value: "Фамилия *",
    SupportedRequiredField.BIRTHDAY.value: "Дата рождения (ГГГГ-ММ-ДД) *",
}

INFO_TITLES = {
    "check_inbox": "📬 Проверьте почту",
    "verify_email": "📬 Подтвердите почту",
    "password_reset_sent": "🔑 Сброс пароля",
    "code_resent": "🔁 Код отправлен повторно",
}


def _act(screen, action, **payload):
    session_manager.send_action(screen, action, **payload)
    st.rerun()


def _render_inline_error(screen):
    if screen.inline_error:
        title = screen.inline_error.get("title")
        description = screen.inline_error.get("description")
        st.error(f"**{title}**\n\n{description}" if title else description)


def _render_identifier(screen):
    vm = screen.view_model
    if vm.get("teaser_text"):
        st.caption(vm["teaser_text"])
    label = "Номер телефона" if vm.get("identifier_type") == "phone" else "Почта"
    with st.form("identity_identifier_form", clear_on_submit=False):
        value = st.text_input(label, value=vm.get("prefilled_value") or "")
        submitted = st.form_submit_button("Продолжить", disabled=screen.loading)
    _render_inline_error(screen)
    if submitted:
        _act(screen, "enter", identifier=value)

    cols = st.columns(2)
    if vm.get("help_url") and cols[0].button("Помощь"):
        _act(screen, "show_help")
    if vm.get("cancelable") and cols[1].button("Отмена"):
        _act(screen, "cancel")


def _render_password(screen):
    vm = screen.view_model
    signup = vm.get("flow_variant") == "signup"
    st.subheader("Создайте пароль" if signup else "Введите пароль")
    st.caption(vm.get("identifier", ""))
    with st.form("identity_password_form", clear_on_submit=True):
        password = st.text_input("Пароль", type="password")
        persist_user = st.checkbox("Запомнить меня", value=True)
        submitted = st.form_submit_button("Зарегистрироваться" if signup else "Войти", disabled=screen.loading)
    _render_inline_error(screen)
    if submitted:
        _act(screen, "enter", password=password, persist_user=persist_user)

    cols = st.columns(3)
    if not signup and cols[0].button("Забыли пароль?"):
        _act(screen, "forgot_password")
    if cols[1].button("Изменить почту"):
        _act(screen, "change_identifier")
    if cols[2].button("Назад"):
        _act(screen, "back")


def _render_verify_code(screen):
    vm = screen.view_model
    st.subheader("Введите код")
    st.caption(f"Код отправлен на {vm.get('identifier', '')}")
    with st.form("identity_code_form", clear_on_submit=True):
        code = st.text_input("Код")
        persist_user = st.checkbox("Запомнить меня", value=True)
        submitted = st.form_submit_button("Подтвердить", disabled=screen.loading)
    _render_inline_error(screen)
    if submitted:
        _act(screen, "enter", code=code, persist_user=persist_user)

    cols = st.columns(3)
    if cols[0].button("Отправить снова"):
        _act(screen, "resend")
    if cols[1].button("Изменить"):
        _act(screen, "change_identifier")
    if cols[2].button("Назад"):
        _act(screen, "back")


def _render_terms(screen):
    vm = screen.view_model
    st.subheader("📄 Условия использования")
    if vm.get("summary"):
        st.write(vm["summary"])
    if vm.get("platform_url"):
        st.markdown(f"[Полный текст]({vm['platform_url']})")
    _render_inline_error(screen)
    cols = st.columns(3)
    if cols[0].button("Принимаю", disabled=screen.loading):
        _act(screen, "accept")
    if cols[1].button("Назад"):
        _act(screen, "back")
    if cols[2].button("Отмена"):
        _act(screen, "cancel")


def _render_required_fields(screen):
    st.subheader("Заполните профиль")
    values = {}
    with st.form("identity_required_fields_form", clear_on_submit=False):
        for name in screen.view_model.get("fields", []):
            raw = st.text_input(FIELD_LABELS.get(name, name), key=f"identity_field_{name}")
            values[name] = SupportedRequiredField(name).format("", raw)
        submitted = st.form_submit_button("Сохранить", disabled=screen.loading)
    _render_inline_error(screen)
    if submitted:
        _act(screen, "update", values=values)

    cols = st.columns(2)
    if cols[0].button("Назад"):
        _act(screen, "back")
    if cols[1].button("Отмена"):
        _act(screen, "cancel")


def _render_info(screen):
    vm = screen.view_model
    st.subheader(INFO_TITLES.get(vm.get("key"), "ℹ️"))
    st.info(vm.get("message", ""))
    if st.button("OK"):
        _act(screen, "ok")


def _render_error(screen):
    vm = screen.view_model
    st.error(f"**{vm.get('title')}**\n\n{vm.get('description')}")
    if st.button("Повторить"):
        _act(screen, "retry")


RENDERERS = {
    "identifier": _render_identifier,
    "password": _render_password,
    "verify_code": _render_verify_code,
    "terms": _render_terms,
    "required_fields": _render_required_fields,
    "info": _render_info,
    "error": _render_error,
}


def render_identity_flow(container):
    """Render the top screen of the presented navigation stack."""
    st.title("🔐 Вход")
    help_url = st.session_state.get("identity_help_url")
    if help_url:
        st.markdown(f"[Открыть справку]({help_url})")
    screen = container.top
    if screen is None:
        return
    RENDERERS[screen.name](screen)
