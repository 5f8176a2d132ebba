"""
Tests for the server capacity model: can_serve, commit and release.
"""
import pytest
from test_utils import create_test_device, create_test_server

from devices import CandidateLink


def make_pair(**server_kwargs):
    server = create_test_server(0, **server_kwargs)
    server.bw = 1000.0
    device = create_test_device(0, pcc=2.0, pcn=2, mem=10.0, sto=100.0)
    device.bw = 100.0
    device.covered = True
    device.servers = [CandidateLink(server=0, distance=0.1)]
    return server, device


def test_total_processing_capacity_is_per_core_times_cores():
    server = create_test_server(0, pcc=2.5, pcn=4)
    assert server.pcc_total == 10.0


def test_can_serve_when_everything_fits():
    server, device = make_pair()
    assert server.can_serve(device)


@pytest.mark.parametrize("kwargs", [
    {"pcc": 0.25, "pcn": 4},   # 1.0 total processing capacity
    {"pcn": 1},
    {"mem": 5.0},
    {"sto": 50.0},
])
def test_can_serve_fails_on_any_dimension(kwargs):
    server, device = make_pair(**kwargs)
    assert not server.can_serve(device)


def test_can_serve_fails_on_bandwidth():
    server, device = make_pair()
    server.bw = 50.0
    assert not server.can_serve(device)


def test_can_serve_accepts_exact_fit():
    server, device = make_pair(pcc=1.0, pcn=2, mem=10.0, sto=100.0)
    assert server.can_serve(device)


def test_can_serve_does_not_mutate():
    server, device = make_pair()
    server.can_serve(device)
    assert server.supply.pcc == 0.0
    assert not server.on


def test_commit_consumes_demand_and_activates():
    server, device = make_pair()

    assert server.commit(device)

    assert server.on
    assert device.served
    assert device.server is device.servers[0]
    assert server.supply.devices == {0}
    assert server.supply.pcc == 2.0
    assert server.supply.pcn == 2
    assert server.supply.mem == 10.0
    assert server.supply.sto == 100.0
    assert server.supply.bw == 100.0


def test_commit_records_explicit_link():
    server, device = make_pair()
    link = device.servers[0]
    server.commit(device, link)
    assert device.server is link


def test_commit_to_non_candidate_server_raises():
    server, device = make_pair()
    device.servers = [CandidateLink(server=7, distance=0.1)]

    with pytest.raises(ValueError):
        server.commit(device)

    assert not device.served
    assert device.server is None
    assert not server.on
    assert server.supply.devices == set()


def test_commit_twice_is_rejected():
    server, device = make_pair()
    server.commit(device)

    assert not server.commit(device)
    assert server.supply.pcc == 2.0, "second commit must not double count"


def test_commit_then_release_restores_supply():
    server, device = make_pair()
    other = create_test_device(1, pcc=0.5, pcn=1, mem=1.0, sto=3.0)
    other.bw = 100.0
    other.servers = [CandidateLink(server=0, distance=0.4)]
    server.commit(other)
    before = (server.supply.pcc, server.supply.pcn, server.supply.mem,
              server.supply.sto, server.supply.bw, server.supply.cnd)

    server.commit(device)
    assert server.release(device)

    after = (server.supply.pcc, server.supply.pcn, server.supply.mem,
             server.supply.sto, server.supply.bw, server.supply.cnd)
    assert after == pytest.approx(before)
    assert not device.served
    assert device.server is None
    assert server.on, "server still serves the other device"


def test_release_last_device_deactivates():
    server, device = make_pair()
    server.commit(device)
    server.release(device)
    assert not server.on
    assert server.supply.devices == set()


def test_release_unknown_device_is_noop():
    server, device = make_pair()
    assert not server.release(device)
    assert server.supply.pcc == 0.0


def test_reset_clears_supply():
    server, device = make_pair()
    server.commit(device)
    server.reset()
    assert not server.on
    assert server.supply.devices == set()
    assert server.supply.mem == 0.0
