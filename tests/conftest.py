import pytest

from identity import ClientConfiguration, IdentityUIConfiguration
from fakes import FakeIdentityManager, FakeSurface
from use_cases.flow_context import FlowContext


@pytest.fixture
def client_config():
    return ClientConfiguration(
        environment="development",
        client_id="client-1",
        client_secret="secret",
        app_url_scheme="myapp",
        server_url="http://identity.test",
    )


@pytest.fixture
def ui_config(client_config):
    return IdentityUIConfiguration(client_configuration=client_config, help_url="https://example.com/help")


@pytest.fixture
def manager(client_config):
    return FakeIdentityManager(client_config)


@pytest.fixture
def context():
    ctx = FlowContext()
    yield ctx
    ctx.close()


@pytest.fixture
def surface():
    return FakeSurface()
