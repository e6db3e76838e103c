# tests/conftest.py

import os

import pytest
from fakes.fake_transport import ScriptedTransport
from helpers import CapturingBus

# ============== Fixtures ==============

@pytest.fixture
def bus():
    return CapturingBus()


@pytest.fixture
def transport():
    return ScriptedTransport()


# ============== Pytest Configuration ==============

def pytest_addoption(parser):
    parser.addoption("--serial-port", action="store", default=os.getenv("DMR_PORT", ""))
    parser.addoption("--baudrate", action="store", type=int, default=int(os.getenv("DMR_BAUDRATE", "115200")))
    parser.addoption("--run-hil", action="store_true", default=False, help="Run HIL tests")


def pytest_configure(config):
    config.addinivalue_line("markers", "hil: hardware-in-the-loop tests (requires a radio module on a serial port)")
    config.addinivalue_line("markers", "slow: marks tests as slow")


def pytest_collection_modifyitems(config, items):
    """Skip HIL tests unless --run-hil is specified."""
    if not config.getoption("--run-hil"):
        skip_hil = pytest.mark.skip(reason="Need --run-hil option to run HIL tests")
        for item in items:
            if "hil" in item.keywords:
                item.add_marker(skip_hil)


# ============== HIL Fixtures ==============

@pytest.fixture(scope="session")
def serial_port(request) -> str:
    port = request.config.getoption("--serial-port")
    if not port:
        pytest.skip("Need --serial-port (or DMR_PORT) for HIL tests")
    return port


@pytest.fixture(scope="session")
def baudrate(request) -> int:
    return request.config.getoption("--baudrate")
