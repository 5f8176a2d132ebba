"""
Pytest configuration and shared fixtures for allocation tests.
"""
import pytest
from test_utils import build_test_state, create_test_device, create_test_server, small_instance

from servers import CLOUD


@pytest.fixture
def small_state():
    """Six covered devices, one uncovered, two edge servers and one cloud server."""
    return small_instance()


@pytest.fixture
def single_slot_state():
    """
    One edge server with room for a single one-core device and a cloud server
    that cannot serve anything, so devices compete for one slot.
    """
    devices = [
        create_test_device(0, km_north=0.5, cnd=3.3),
        create_test_device(1, km_north=0.6, cnd=9.9),
    ]
    servers = [
        create_test_server(0, pcn=1),
        create_test_server(1, pcn=0, type=CLOUD),
    ]
    return build_test_state(devices, servers)


@pytest.fixture
def uncovered_state():
    """Every device is out of edge coverage."""
    devices = [
        create_test_device(0, km_north=8.0, cnd=3.3),
        create_test_device(1, km_north=9.0, cnd=5.5),
    ]
    servers = [
        create_test_server(0),
        create_test_server(1, type=CLOUD),
    ]
    return build_test_state(devices, servers)
