"""Identity flow orchestration (application layer).

``IdentityFlow`` runs one sign-in/sign-up flow at a time per ``FlowContext``:
it collects the identifier, resolves whether the user signs in or signs up,
hands over to an authentication coordinator and reconciles deep-link routes
against whatever is currently on screen. Each started run produces exactly
one ``FlowOutput``.
"""

import asyncio
import logging
from typing import Callable, Optional

from identity import ErrorKind, IdentityError, PreconditionFailure
from use_cases.auth_coordinators import make_coordinator
from use_cases.child_flow import ChildFlowCoordinator
from use_cases.flow_models import (
    AuthenticationInput,
    AuthenticationType,
    ByLoginMethod,
    ByRoute,
    CoordinatorOutput,
    CoordinatorStatus,
    Disposition,
    EnterPassword,
    FlowOutput,
    FlowStatus,
    FlowVariant,
    Identifier,
    IdentifierType,
    IdentityUIResult,
    Login,
    RouteHandleResult,
    UIResultStatus,
    ValidateAuthCode,
)
from use_cases.interactors import AuthenticationCodeInteractor, FetchStatusInteractor
from use_cases.navigation import NavigationStack, Screen, push_error_screen

log = logging.getLogger(__name__)

Completion = Callable[[FlowOutput], None]


class IdentityFlow:
    def __init__(
        self,
        configuration,
        identity_manager,
        context,
        delegate=None,
        fetch_status_interactor=None,
        auth_code_interactor=None,
        coordinator_factory=make_coordinator,
    ):
        if identity_manager.client_configuration != configuration.client_configuration:
            raise PreconditionFailure("IdentityFlow configured with an identity manager for another client configuration")

        self.configuration = configuration
        self.identity_manager = identity_manager
        self.context = context
        self.delegate = delegate
        self.fetch_status_interactor = fetch_status_interactor or FetchStatusInteractor(identity_manager)
        self.auth_code_interactor = auth_code_interactor or AuthenticationCodeInteractor(identity_manager)
        self.coordinator_factory = coordinator_factory

        self.navigation = NavigationStack()
        self.child: Optional[ChildFlowCoordinator] = None
        self._surface = None
        self._completion: Optional[Completion] = None
        self._completed = True
        self._status_task = None
        self._code_task = None

    @property
    def tracker(self):
        return self.configuration.tracker

    @property
    def is_presented(self) -> bool:
        return self._surface is not None

    @property
    def is_active(self) -> bool:
        return self.context.active_flow is self

    # --- public entry points ---

    def present_identity_process(self, surface, login_method, teaser_text: Optional[str] = None, scopes=()) -> None:
        if self.tracker is not None:
            self.tracker.login_method = login_method
        self.start(ByLoginMethod(login_method, surface, teaser_text, tuple(scopes)), self._finish)

    def present_route(self, surface, route) -> None:
        if self.tracker is not None:
            self.tracker.login_method = route.login_method
        self.start(ByRoute(route, surface), self._finish)

    def _finish(self, output: FlowOutput) -> None:
        if output.status == FlowStatus.SUCCESS:
            if self.tracker is not None:
                self.tracker.engagement("done")
            result = IdentityUIResult(UIResultStatus.COMPLETED, output.user)
        elif output.status == FlowStatus.CANCEL:
            if self.tracker is not None:
                self.tracker.login_id = None
            result = IdentityUIResult(UIResultStatus.CANCELED)
        else:
            # NOT_STARTED never presented anything, ONLY_DISMISS was asked for by the delegate.
            return
        if self.delegate is not None:
            self.delegate.did_finish(result)

    # --- lifecycle ---

    def start(self, flow_input, completion: Completion) -> None:
        active = self.context.active_flow
        if active is not None:
            if not isinstance(flow_input, ByRoute):
                raise PreconditionFailure("Attempt to present a new identity flow while another one is already presented")
            log.info(f"Identity flow already presented, reconciling {type(flow_input.route).__name__} in place")
            active.handle_route(flow_input.route)
            completion(FlowOutput(FlowStatus.NOT_STARTED))
            return

        self.context.active_flow = self
        self._completion = completion
        self._completed = False
        self.navigation = NavigationStack()
        log.info(f"Identity flow started ({type(flow_input).__name__})")

        if isinstance(flow_input, ByRoute):
            route = flow_input.route
            scopes = route.scopes if isinstance(route, EnterPassword) else ()
            self.navigation.set_root(self._make_identifier_screen(route.login_method, None, scopes))
            self.handle_route(route, presenting_surface=flow_input.presenting_surface)
        else:
            self.navigation.set_root(
                self._make_identifier_screen(flow_input.method, flow_input.teaser_text, flow_input.scopes)
            )
            self._present(flow_input.presenting_surface)

    def complete(self, output: FlowOutput) -> None:
        if self._completed:
            log.warning(f"Ignoring {output.status.value}: this flow already completed")
            return
        self._completed = True
        self._cancel_pending()
        self._destroy_child()

        # Cleared before the callback runs so that it may start another flow.
        if self.context.active_flow is self:
            self.context.active_flow = None

        completion, self._completion = self._completion, None
        surface, self._surface = self._surface, None
        log.info(f"Identity flow completed with {output.status.value}")

        if surface is not None:
            surface.dismiss(animated=True, completion=lambda: completion(output))
        else:
            completion(output)

    def _present(self, surface) -> None:
        if self._surface is not None or surface is None:
            return
        self._surface = surface
        surface.present(self.navigation, animated=True)

    def _cancel_pending(self) -> None:
        current = asyncio.current_task(self.context.loop)
        for task in (self._status_task, self._code_task):
            if task is not None and task is not current and not task.done():
                task.cancel()
        self._status_task = None
        self._code_task = None

    # --- identifier step ---

    def _make_identifier_screen(self, login_method, teaser_text, scopes) -> Screen:
        screen = Screen(
            name="identifier",
            view_model={
                "identifier_type": login_method.identifier_type.value,
                "prefilled_value": login_method.prefilled_value,
                "teaser_text": teaser_text,
                "cancelable": self.configuration.is_cancelable,
                "help_url": self.configuration.help_url,
            },
            inline_error_kinds=frozenset({ErrorKind.INVALID_IDENTIFIER, ErrorKind.RATE_LIMITED}),
        )

        def handle(action: str, **payload) -> None:
            if action == "enter":
                self._submit_identifier(screen, login_method, payload.get("identifier", ""), tuple(scopes))
            elif action == "show_help":
                if self._surface is not None and self.configuration.help_url:
                    self._surface.present_url(self.configuration.help_url)
            elif action == "back":
                # First screen: going back leaves the flow.
                self.complete(FlowOutput(FlowStatus.CANCEL))
            elif action == "cancel" and self.configuration.is_cancelable:
                self.complete(FlowOutput(FlowStatus.CANCEL))

        screen.on_action = handle
        return screen

    def _submit_identifier(self, screen: Screen, login_method, raw_identifier: str, scopes) -> None:
        if self._status_task is not None and not self._status_task.done():
            log.debug("Identifier submission suppressed, status lookup pending")
            return
        try:
            identifier = Identifier.parse(raw_identifier, login_method.identifier_type)
        except IdentityError as error:
            screen.show_inline_error(error)
            return
        screen.start_loading()
        self._status_task = self.context.spawn(
            self._resolve_flow_variant(screen, identifier, login_method.authentication_type, scopes)
        )

    async def _resolve_flow_variant(self, screen: Screen, identifier: Identifier, authentication_type, scopes) -> None:
        try:
            status = await self.fetch_status_interactor.fetch_status(identifier)
        except IdentityError as error:
            if self._owns_status_lookup() and not screen.show_inline_error(error):
                self._present_error(error)
            return
        finally:
            screen.end_loading()

        if not self._owns_status_lookup():
            log.debug("Dropping status lookup result, the identifier step was superseded")
            return
        self._status_task = None
        flow_variant = FlowVariant.SIGNUP if status.available else FlowVariant.SIGNIN
        log.debug(f"Resolved flow variant {flow_variant.value}")
        if self.tracker is not None:
            self.tracker.login_flow_variant = flow_variant

        disposition = self.delegate.will_present(flow_variant) if self.delegate is not None else Disposition.cont()
        if disposition.action == "CONTINUE":
            self.spawn_coordinator(authentication_type, identifier, flow_variant, scopes)
        elif disposition.action == "ABORT":
            if disposition.should_dismiss:
                self.complete(FlowOutput(FlowStatus.ONLY_DISMISS))
        elif disposition.action == "SHOW_ERROR":
            screen.show_message(disposition.title, disposition.description)

    def _owns_status_lookup(self) -> bool:
        return self._status_task is asyncio.current_task(self.context.loop)

    def _cancel_status_lookup(self) -> None:
        task, self._status_task = self._status_task, None
        if task is not None and not task.done() and task is not asyncio.current_task(self.context.loop):
            task.cancel()
        if self.navigation.root is not None:
            self.navigation.root.end_loading()

    # --- child coordinator ---

    def spawn_coordinator(
        self,
        authentication_type: AuthenticationType,
        identifier: Identifier,
        flow_variant: FlowVariant,
        scopes=(),
        completion: Optional[Completion] = None,
    ) -> ChildFlowCoordinator:
        completion = completion or self.complete
        self._destroy_child()
        # A coordinator always starts right above identifier entry.
        self.navigation.pop_to_root()

        coordinator = self.coordinator_factory(
            authentication_type,
            navigation=self.navigation,
            identity_manager=self.identity_manager,
            configuration=self.configuration,
            context=self.context,
        )
        child = ChildFlowCoordinator(coordinator, AuthenticationInput(identifier, flow_variant, tuple(scopes)))
        self.child = child
        child.start(lambda output: self._on_child_output(child, output, completion))
        return child

    def _on_child_output(self, child: ChildFlowCoordinator, output: CoordinatorOutput, completion: Completion) -> None:
        if child is not self.child:
            log.debug(f"Dropping {output.status.value} from a replaced coordinator")
            return

        if output.status == CoordinatorStatus.ERROR:
            if output.error is not None:
                self._present_error(output.error)
            return

        self._destroy_child()
        if output.status == CoordinatorStatus.SUCCESS:
            completion(FlowOutput.success(output.user))
        elif output.status == CoordinatorStatus.CANCEL:
            completion(FlowOutput(FlowStatus.CANCEL))
        elif output.status == CoordinatorStatus.BACK:
            self.navigation.pop()
        elif output.status == CoordinatorStatus.CHANGE_IDENTIFIER:
            self.navigation.pop_to_root()
        elif output.status == CoordinatorStatus.RESET:
            self.navigation.pop_to_root()
            if output.error is not None:
                self._present_error(output.error)

    def _destroy_child(self) -> None:
        if self.child is not None:
            child, self.child = self.child, None
            child.stop()

    # --- routes ---

    def handle_route(self, route, presenting_surface=None) -> None:
        if self._completed:
            log.warning(f"Ignoring {type(route).__name__}: this flow already completed")
            return
        log.info(f"Handling route {type(route).__name__}")

        if self.attempt_to_propagate_route_to_child(route):
            return

        if isinstance(route, Login):
            # The identifier step is already the root.
            pass
        elif isinstance(route, EnterPassword):
            try:
                identifier = Identifier.parse(route.identifier, IdentifierType.EMAIL)
            except IdentityError as error:
                self._present(presenting_surface)
                self._present_error(error)
                return
            self._cancel_status_lookup()
            self.spawn_coordinator(AuthenticationType.PASSWORD, identifier, FlowVariant.SIGNIN, route.scopes)
        elif isinstance(route, ValidateAuthCode):
            # No UI is presented until the code turns out to be invalid.
            self._validate_auth_code(route, presenting_surface)
            return

        self._present(presenting_surface)

    def attempt_to_propagate_route_to_child(self, route) -> bool:
        """Offer ``route`` to the live coordinator; True when it absorbed it."""
        if self.child is None:
            return False
        result = self.child.handle_route(route)
        if result == RouteHandleResult.HANDLED:
            return True
        if result == RouteHandleResult.RESET_REQUEST:
            self._destroy_child()
            self.navigation.pop_to_root()
        return False

    def _validate_auth_code(self, route: ValidateAuthCode, presenting_surface) -> None:
        if self._code_task is not None and not self._code_task.done():
            self._code_task.cancel()
        self._code_task = self.context.spawn(self._run_code_validation(route, presenting_surface))

    async def _run_code_validation(self, route: ValidateAuthCode, presenting_surface) -> None:
        try:
            user = await self.auth_code_interactor.validate(route.code, route.persist_user)
        except IdentityError as error:
            self._code_task = None
            self._present(presenting_surface)
            self._present_error(error)
            return

        self._code_task = None
        if self.tracker is not None:
            self.tracker.login_id = user.user_id
            self.tracker.engagement("account_verified")
        self.complete(FlowOutput.success(user))

    # --- errors ---

    def _present_error(self, error: Exception) -> None:
        log.info(f"Presenting error: {error}")
        push_error_screen(self.navigation, error)
