import os
import pytest
from .fakes import FakePage, FakeServer, demo_server


def pytest_collection_modifyitems(config, items):
    if os.environ.get("PLAYWRIGHT_MOCKING_LIVE"):
        return
    skip_live = pytest.mark.skip(reason="set PLAYWRIGHT_MOCKING_LIVE=1 to run against a real browser")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


@pytest.fixture
def server() -> FakeServer:
    return demo_server()


@pytest.fixture
def page(server) -> FakePage:
    return FakePage(server)
