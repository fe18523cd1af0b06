from unittest.mock import MagicMock

from fakes import USER
from use_cases.child_flow import ChildFlowCoordinator
from use_cases.flow_models import (
    AuthenticationInput,
    CoordinatorOutput,
    CoordinatorStatus,
    FlowVariant,
    Identifier,
    Login,
    RouteHandleResult,
)


def make_child():
    coordinator = MagicMock()
    coordinator.handle_route.return_value = RouteHandleResult.HANDLED
    child = ChildFlowCoordinator(coordinator, AuthenticationInput(Identifier("a@example.com"), FlowVariant.SIGNIN))
    outputs = []
    child.start(outputs.append)
    on_output = coordinator.start.call_args[0][1]
    return child, coordinator, outputs, on_output


def test_start_passes_input_to_coordinator():
    child, coordinator, _, _ = make_child()
    assert coordinator.start.call_args[0][0] == child.input


def test_error_output_keeps_child_alive():
    child, coordinator, outputs, on_output = make_child()
    error = RuntimeError("boom")

    on_output(CoordinatorOutput(CoordinatorStatus.ERROR, error=error))

    assert not child.finished
    assert child.handle_route(Login()) == RouteHandleResult.HANDLED
    assert outputs == [CoordinatorOutput(CoordinatorStatus.ERROR, error=error)]


def test_terminal_output_finishes_child_once():
    child, coordinator, outputs, on_output = make_child()

    on_output(CoordinatorOutput(CoordinatorStatus.SUCCESS, user=USER))
    on_output(CoordinatorOutput(CoordinatorStatus.CANCEL))

    assert child.finished
    assert outputs == [CoordinatorOutput(CoordinatorStatus.SUCCESS, user=USER)]


def test_finished_child_cannot_handle_routes():
    child, coordinator, _, on_output = make_child()
    on_output(CoordinatorOutput(CoordinatorStatus.BACK))

    assert child.handle_route(Login()) == RouteHandleResult.CANNOT_HANDLE
    coordinator.handle_route.assert_not_called()


def test_stop_stops_coordinator():
    child, coordinator, _, _ = make_child()
    child.stop()
    coordinator.stop.assert_called_once()
    assert child.finished
