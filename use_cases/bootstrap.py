"""Startup orchestration for the identity host app."""

from dataclasses import dataclass
from typing import Literal, Optional, Tuple

from use_cases.terms_flow import ensure_acceptance_of_new_terms, present_terms
from utils import session_manager

StartupStatus = Literal["CONTINUE", "STOP"]


@dataclass(frozen=True)
class StartupResult:
    """Result contract for startup/bootstrap orchestration."""

    status: StartupStatus
    planned_steps: Tuple[str, ...]


def run_startup(redirect_url: Optional[str] = None) -> StartupResult:
    """Prepare session state and run the launch-time terms check."""
    executed_steps = []

    session_manager.init_session_state()
    executed_steps.append("init_session_state")

    flow = session_manager.get_identity_flow()
    executed_steps.append("build_identity_flow")

    # A recognized deep link takes precedence over the terms check.
    has_redirect = bool(redirect_url) and flow.identity_manager.parse_redirect_url(redirect_url) is not None
    if not has_redirect and flow.identity_manager.current_user is not None:
        surface = session_manager.StreamlitSurface()

        def on_new_terms(terms, user):
            present_terms(terms, user, surface, flow.configuration, flow.identity_manager, flow.context)

        if ensure_acceptance_of_new_terms(flow.identity_manager, flow.context, on_new_terms) is not None:
            executed_steps.append("ensure_acceptance_of_new_terms")
            flow.context.run_pending()

    return StartupResult(status="CONTINUE", planned_steps=tuple(executed_steps))
