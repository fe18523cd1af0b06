"""Adapter between the orchestrator and one live authentication coordinator."""

import logging
from typing import Callable, Optional

from use_cases.flow_models import AuthenticationInput, CoordinatorOutput, CoordinatorStatus, RouteHandleResult

log = logging.getLogger(__name__)


class ChildFlowCoordinator:
    """Owns one coordinator for the span between spawn and its terminal output.

    ``ERROR`` outputs leave the coordinator running; every other output
    finishes the adapter, after which routes are no longer offered to it.
    """

    def __init__(self, coordinator, auth_input: AuthenticationInput):
        self.coordinator = coordinator
        self.input = auth_input
        self.finished = False
        self._on_output: Optional[Callable[[CoordinatorOutput], None]] = None

    def start(self, on_output: Callable[[CoordinatorOutput], None]) -> None:
        self._on_output = on_output
        self.coordinator.start(self.input, self._receive)

    def _receive(self, output: CoordinatorOutput) -> None:
        if self.finished:
            log.warning(f"Ignoring {output.status.value} from a finished {type(self.coordinator).__name__}")
            return
        if output.status != CoordinatorStatus.ERROR:
            self.finished = True
        self._on_output(output)

    def handle_route(self, route) -> RouteHandleResult:
        if self.finished:
            return RouteHandleResult.CANNOT_HANDLE
        result = self.coordinator.handle_route(route)
        log.debug(f"{type(self.coordinator).__name__} answered {result.value} for {type(route).__name__}")
        return result

    def stop(self) -> None:
        self.finished = True
        self.coordinator.stop()
