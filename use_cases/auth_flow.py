"""Authentication gate and deep-link dispatch (application layer)."""

import logging
from dataclasses import dataclass
from typing import Callable, Literal, Optional

from identity import IdentityError
from use_cases import deep_links
from use_cases.flow_models import AfterForgotPassword, CodeAfterSignup, CodeAfterUnvalidatedLogin
from use_cases.interactors import AuthenticationCodeInteractor
from utils import session_manager

log = logging.getLogger(__name__)

AuthFlowStatus = Literal["CONTINUE", "STOP"]


@dataclass(frozen=True)
class AuthFlowResult:
    """Result contract for auth gate orchestration."""

    status: AuthFlowStatus
    reason: str
    user_id: Optional[str] = None


def ensure_authenticated_session() -> AuthFlowResult:
    """Return CONTINUE when a user is logged in, STOP when the identity UI must be shown."""
    session_manager.init_session_state()

    auth_user = session_manager.st.session_state.get("auth_user")
    if auth_user is None:
        auth_user = session_manager.get_identity_client().current_user
        session_manager.st.session_state.auth_user = auth_user
    if auth_user is None:
        return AuthFlowResult(status="STOP", reason="auth_required")
    return AuthFlowResult(status="CONTINUE", reason="authenticated", user_id=auth_user.user_id)


def validate_deep_link_code(identity_manager, context, code: str, persist_user: bool, on_user: Callable):
    """Validate a code from a launch link without presenting any UI."""
    interactor = AuthenticationCodeInteractor(identity_manager)

    async def validate() -> None:
        try:
            user = await interactor.validate(code, persist_user)
        except IdentityError as e:
            log.warning(f"Deep link code rejected: {e}")
            return
        on_user(user)

    return context.spawn(validate())


def open_deep_link(url: str, flow, surface=None, on_user: Optional[Callable] = None) -> bool:
    """Dispatch a redirect URL.

    With a surface the link resumes (or starts) the identity flow as a route;
    without one it is treated as a launch payload and handled headless.
    """
    log.info("The app was opened with a deep link")
    payload = flow.identity_manager.parse_redirect_url(url)
    if payload is None:
        log.info("Not a valid deep link")
        return False

    if surface is not None:
        route = deep_links.route_from_payload(payload)
        if route is not None:
            flow.present_route(surface, route)
            return True

    launch_payload = deep_links.launch_payload_from_payload(payload)
    if launch_payload is None:
        log.warning(f"Unhandled deep link path '{payload.path}'")
        return False

    on_user = on_user or (lambda _user: None)
    if isinstance(launch_payload, AfterForgotPassword):
        log.info("Password changed, user can log in with the new password now")
    elif isinstance(launch_payload, CodeAfterSignup):
        validate_deep_link_code(flow.identity_manager, flow.context, launch_payload.code, launch_payload.should_persist_user, on_user)
    elif isinstance(launch_payload, CodeAfterUnvalidatedLogin):
        validate_deep_link_code(flow.identity_manager, flow.context, launch_payload.code, False, on_user)
    return True
