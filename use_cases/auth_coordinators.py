"""Authentication coordinators: per-method sub-flows ending in a CoordinatorOutput."""

import logging
from typing import Callable, Optional

from identity import (
    ErrorKind,
    IdentityError,
    InvalidCodeError,
    InvalidPasswordError,
    RequiredFieldError,
    UnverifiedEmailError,
)
from use_cases.flow_models import (
    AuthenticationInput,
    AuthenticationType,
    CoordinatorOutput,
    CoordinatorStatus,
    EnterPassword,
    FlowVariant,
    Login,
    RouteHandleResult,
    User,
)
from use_cases.interactors import IdentityInteractor
from use_cases.navigation import Screen
from use_cases.required_fields import SupportedRequiredField

log = logging.getLogger(__name__)

OutputHandler = Callable[[CoordinatorOutput], None]


class AuthenticationCoordinator:
    """Shared plumbing for the password and passwordless sub-flows.

    A coordinator pushes its screens onto the orchestrator's navigation stack,
    runs at most one backend request at a time and reports through the output
    handler given to ``start``. After ``stop`` nothing is reported anymore.
    """

    authentication_type: Optional[AuthenticationType] = None

    def __init__(self, navigation, identity_manager, configuration, context):
        self.navigation = navigation
        self.identity_manager = identity_manager
        self.configuration = configuration
        self.context = context
        self.input: Optional[AuthenticationInput] = None
        self.first_screen: Optional[Screen] = None
        self._interactor = IdentityInteractor(identity_manager)
        self._on_output: Optional[OutputHandler] = None
        self._task = None
        self._stopped = False

    # --- contract ---

    def start(self, auth_input: AuthenticationInput, on_output: OutputHandler) -> None:
        self.input = auth_input
        self._on_output = on_output
        self.begin()

    def begin(self) -> None:
        raise NotImplementedError

    def handle_route(self, route) -> RouteHandleResult:
        raise NotImplementedError

    def stop(self) -> None:
        self._stopped = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    # --- helpers ---

    @property
    def identifier(self):
        return self.input.identifier

    def emit(self, status: CoordinatorStatus, user: Optional[User] = None, error: Optional[Exception] = None) -> None:
        if self._stopped or self._on_output is None:
            return
        self._on_output(CoordinatorOutput(status, user=user, error=error))

    def run(self, screen: Optional[Screen], method_name: str, *args, on_success, on_error=None) -> None:
        if self._task is not None and not self._task.done():
            log.debug(f"Request '{method_name}' suppressed, another one is pending")
            return
        if screen is not None:
            screen.start_loading()
        self._task = self.context.spawn(self._request(screen, method_name, args, on_success, on_error))

    async def _request(self, screen, method_name, args, on_success, on_error) -> None:
        try:
            result = await self._interactor.call(method_name, *args)
        except IdentityError as error:
            self._task = None
            if not self._stopped:
                (on_error or self.surface_error)(screen, error)
            return
        finally:
            if screen is not None:
                screen.end_loading()
        self._task = None
        if not self._stopped:
            on_success(result)

    def surface_error(self, screen: Optional[Screen], error: Exception) -> None:
        if screen is not None and screen.show_inline_error(error):
            return
        self.emit(CoordinatorStatus.ERROR, error=error)

    def push_info(self, key: str, message: str) -> Screen:
        screen = Screen(name="info", view_model={"key": key, "message": message})

        def handle(action: str, **_payload) -> None:
            if action == "ok":
                self.navigation.remove(screen)

        screen.on_action = handle
        self.navigation.push(screen)
        return screen

    def leave_to_first_screen(self) -> None:
        self.identity_manager.logout()
        if self.first_screen is not None:
            self.navigation.pop_to(self.first_screen)

    def handle_common_action(self, action: str) -> bool:
        if action == "back":
            self.emit(CoordinatorStatus.BACK)
        elif action == "cancel":
            self.emit(CoordinatorStatus.CANCEL)
        elif action == "change_identifier":
            self.emit(CoordinatorStatus.CHANGE_IDENTIFIER)
        else:
            return False
        return True

    # --- post-login completion: terms, then required fields ---

    def complete_login(self, user: User) -> None:
        if self.input.flow_variant == FlowVariant.SIGNUP:
            self.run(None, "fetch_terms", on_success=lambda terms: self.show_terms(user, terms), on_error=self._post_login_error)
            return

        def on_status(accepted: bool) -> None:
            if accepted:
                self.check_required_fields(user)
            else:
                self.run(None, "fetch_terms", on_success=lambda terms: self.show_terms(user, terms), on_error=self._post_login_error)

        self.run(None, "agreements_status", user, on_success=on_status, on_error=self._post_login_error)

    def _post_login_error(self, _screen, error: Exception) -> None:
        self.emit(CoordinatorStatus.ERROR, error=error)

    def show_terms(self, user: User, terms) -> None:
        screen = Screen(
            name="terms",
            view_model={"platform_url": terms.platform_url, "summary": terms.summary},
            inline_error_kinds=frozenset({ErrorKind.NETWORK}),
        )

        def handle(action: str, **_payload) -> None:
            if action == "accept":
                self.run(screen, "accept_agreements", user, on_success=lambda _: self.check_required_fields(user))
            elif action == "back":
                self.leave_to_first_screen()
            elif action == "cancel":
                self.emit(CoordinatorStatus.CANCEL)

        screen.on_action = handle
        self.navigation.push(screen)

    def check_required_fields(self, user: User) -> None:
        def on_fields(names) -> None:
            fields = SupportedRequiredField.from_required(names)
            if not fields:
                self.emit(CoordinatorStatus.SUCCESS, user=user)
            else:
                self.show_required_fields(user, fields)

        self.run(None, "required_fields", user, on_success=on_fields, on_error=self._post_login_error)

    def show_required_fields(self, user: User, fields) -> None:
        screen = Screen(
            name="required_fields",
            view_model={"fields": [f.value for f in fields]},
            inline_error_kinds=frozenset({ErrorKind.REQUIRED_FIELD, ErrorKind.NETWORK}),
        )

        def handle(action: str, **payload) -> None:
            if action == "update":
                values = {f.value: (payload.get("values", {}).get(f.value) or "").strip() for f in fields}
                for field in fields:
                    reason = field.validate(values[field.value])
                    if reason is not None:
                        screen.show_inline_error(RequiredFieldError(field.value, reason.value))
                        return
                self.run(
                    screen,
                    "update_profile",
                    user,
                    values,
                    on_success=lambda _: self.emit(CoordinatorStatus.SUCCESS, user=user),
                )
            elif action == "back":
                self.leave_to_first_screen()
            elif action == "cancel":
                self.emit(CoordinatorStatus.CANCEL)

        screen.on_action = handle
        self.navigation.push(screen)


class PasswordCoordinator(AuthenticationCoordinator):
    authentication_type = AuthenticationType.PASSWORD

    def begin(self) -> None:
        screen = Screen(
            name="password",
            view_model={
                "identifier": self.identifier.value,
                "flow_variant": self.input.flow_variant.value,
            },
            inline_error_kinds=frozenset({ErrorKind.INVALID_PASSWORD, ErrorKind.RATE_LIMITED}),
        )
        screen.on_action = self._on_action
        self.first_screen = screen
        self.navigation.push(screen)

    def _on_action(self, action: str, **payload) -> None:
        if self.handle_common_action(action):
            return
        screen = self.first_screen

        if action == "enter":
            password = payload.get("password") or ""
            persist_user = bool(payload.get("persist_user", False))
            if not password:
                screen.show_inline_error(InvalidPasswordError("Password is required", title="Enter your password"))
                return
            if self.input.flow_variant == FlowVariant.SIGNIN:
                self.run(
                    screen,
                    "login_with_password",
                    self.identifier,
                    password,
                    persist_user,
                    self.input.scopes,
                    on_success=self.complete_login,
                    on_error=self._on_login_error,
                )
            else:
                self.run(
                    screen,
                    "signup_with_password",
                    self.identifier,
                    password,
                    persist_user,
                    self.input.scopes,
                    on_success=lambda _: self.push_info("check_inbox", f"We sent a link to {self.identifier.value}"),
                )
        elif action == "forgot_password":
            self.run(
                screen,
                "request_password_reset",
                self.identifier,
                on_success=lambda _: self.push_info("password_reset_sent", f"Reset instructions sent to {self.identifier.value}"),
            )

    def _on_login_error(self, screen, error: Exception) -> None:
        if isinstance(error, UnverifiedEmailError):
            self.push_info("verify_email", f"Verify {self.identifier.value} using the link we sent you")
            return
        self.surface_error(screen, error)

    def handle_route(self, route) -> RouteHandleResult:
        if isinstance(route, EnterPassword):
            if route.identifier.strip().lower() == self.identifier.value:
                self.navigation.pop_to(self.first_screen)
                return RouteHandleResult.HANDLED
            return RouteHandleResult.RESET_REQUEST
        if isinstance(route, Login):
            return RouteHandleResult.RESET_REQUEST
        return RouteHandleResult.CANNOT_HANDLE


class PasswordlessCoordinator(AuthenticationCoordinator):
    authentication_type = AuthenticationType.PASSWORDLESS

    def begin(self) -> None:
        self.run(
            self.navigation.top,
            "send_code",
            self.identifier,
            on_success=lambda _: self._show_verify_screen(),
            on_error=lambda _screen, error: self.emit(CoordinatorStatus.RESET, error=error),
        )

    def _show_verify_screen(self) -> None:
        screen = Screen(
            name="verify_code",
            view_model={
                "identifier": self.identifier.value,
                "identifier_type": self.identifier.type.value,
            },
            inline_error_kinds=frozenset({ErrorKind.INVALID_CODE, ErrorKind.RATE_LIMITED}),
        )
        screen.on_action = self._on_action
        self.first_screen = screen
        self.navigation.push(screen)

    def _on_action(self, action: str, **payload) -> None:
        if self.handle_common_action(action):
            return
        screen = self.first_screen

        if action == "enter":
            code = (payload.get("code") or "").strip()
            persist_user = bool(payload.get("persist_user", False))
            if not code:
                screen.show_inline_error(InvalidCodeError("Code is required", title="Enter the code"))
                return
            self.run(
                screen,
                "validate_one_time_code",
                self.identifier,
                code,
                persist_user,
                self.input.scopes,
                on_success=self.complete_login,
            )
        elif action == "resend":
            self.run(
                screen,
                "resend_code",
                self.identifier,
                on_success=lambda _: self.push_info("code_resent", f"A new code was sent to {self.identifier.value}"),
            )

    def handle_route(self, route) -> RouteHandleResult:
        if isinstance(route, (Login, EnterPassword)):
            return RouteHandleResult.RESET_REQUEST
        # Auth codes from links are validated by the orchestrator itself.
        return RouteHandleResult.CANNOT_HANDLE


COORDINATORS = {
    AuthenticationType.PASSWORD: PasswordCoordinator,
    AuthenticationType.PASSWORDLESS: PasswordlessCoordinator,
}


def make_coordinator(authentication_type: AuthenticationType, navigation, identity_manager, configuration, context) -> AuthenticationCoordinator:
    coordinator_cls = COORDINATORS[authentication_type]
    return coordinator_cls(navigation, identity_manager, configuration, context)
