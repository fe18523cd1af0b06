"""Terms acceptance outside of a login flow."""

import logging
from typing import Callable, Optional

from identity import ErrorKind, IdentityError, PreconditionFailure
from use_cases.interactors import IdentityInteractor
from use_cases.navigation import NavigationStack, Screen, push_error_screen

log = logging.getLogger(__name__)


def ensure_acceptance_of_new_terms(identity_manager, context, on_new_terms: Callable):
    """Check in the background whether the logged-in user must accept new terms.

    Failures are only logged: the check runs again on the next launch.
    Returns the spawned task, or None when nobody is logged in.
    """
    user = identity_manager.current_user
    if user is None:
        return None
    interactor = IdentityInteractor(identity_manager)

    async def check() -> None:
        try:
            accepted = await interactor.call("agreements_status", user)
        except IdentityError as e:
            log.error(f"Error attempting to fetch availability of new terms: {e}")
            return
        if accepted:
            return
        try:
            terms = await interactor.call("fetch_terms")
        except IdentityError as e:
            log.error(f"Error attempting to fetch updated terms: {e}")
            return
        on_new_terms(terms, user)

    return context.spawn(check())


class TermsFlow:
    """Single terms screen for a user who is already logged in."""

    def __init__(self, terms, user, configuration, identity_manager, context):
        if identity_manager.client_configuration != configuration.client_configuration:
            raise PreconditionFailure("Attempt to present terms with a mismatching client configuration")
        self.terms = terms
        self.user = user
        self.configuration = configuration
        self.identity_manager = identity_manager
        self.context = context
        self.navigation = NavigationStack()
        self._interactor = IdentityInteractor(identity_manager)
        self._surface = None
        self._completion: Optional[Callable[[bool], None]] = None

    def present(self, surface, completion: Optional[Callable[[bool], None]] = None) -> None:
        self._surface = surface
        self._completion = completion
        screen = Screen(
            name="terms",
            view_model={"platform_url": self.terms.platform_url, "summary": self.terms.summary},
            inline_error_kinds=frozenset({ErrorKind.NETWORK}),
        )
        screen.on_action = lambda action, **_payload: self._on_action(screen, action)
        self.navigation.set_root(screen)
        surface.present(self.navigation, animated=True)

    def _on_action(self, screen: Screen, action: str) -> None:
        if action == "accept":
            screen.start_loading()
            self.context.spawn(self._accept(screen))
        elif action in ("cancel", "back"):
            self.identity_manager.logout()
            self._finish(False)

    async def _accept(self, screen: Screen) -> None:
        try:
            await self._interactor.call("accept_agreements", self.user)
        except IdentityError as error:
            if not screen.show_inline_error(error):
                push_error_screen(self.navigation, error)
            return
        finally:
            screen.end_loading()
        self._finish(True)

    def _finish(self, accepted: bool) -> None:
        surface, self._surface = self._surface, None
        completion, self._completion = self._completion, None
        if surface is None:
            return

        def done() -> None:
            if completion is not None:
                completion(accepted)

        surface.dismiss(animated=True, completion=done)


def present_terms(terms, user, surface, configuration, identity_manager, context, completion=None) -> TermsFlow:
    flow = TermsFlow(terms, user, configuration, identity_manager, context)
    flow.present(surface, completion)
    return flow
