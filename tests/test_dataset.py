"""
Tests for synthetic data generation and the CSV cache.
"""
import os

import pytest

from dataset import (AREA, CLOUD_CAPACITY, DEVICE_FIELDS, NUM_SERVICES, PROCESSING_WORK,
                     DataStore, read_table, service_cost, write_table)


@pytest.mark.parametrize("pcn,pcc,expected", [
    (1, 0.5, 3.3),
    (2, 3.0, 5.5),
    (3, 6.0, 7.7),
    (4, 9.0, 9.9),
    (4, 10.0, 9.9),
])
def test_service_cost_bands(pcn, pcc, expected):
    assert service_cost(pcn, pcc) == pytest.approx(expected)


def test_services_profiles(tmp_path):
    services = DataStore(root=str(tmp_path), seed=3).services()

    assert len(services) == NUM_SERVICES
    for service in services:
        assert 1 <= int(service["PCN"]) <= 4
        assert 1 <= int(service["TSK"]) <= 4
        assert float(service["CND"]) == pytest.approx(
            service_cost(int(service["PCN"]), float(service["PCC"])))


def test_devices_generated_inside_area(tmp_path):
    devices = DataStore(root=str(tmp_path), seed=3).devices(25)

    assert len(devices) == 25
    for device in devices:
        assert set(DEVICE_FIELDS) <= set(device)
        assert AREA[0] <= float(device["LAT"]) <= AREA[1]
        assert AREA[2] <= float(device["LON"]) <= AREA[3]


def test_devices_are_cached_per_size(tmp_path):
    first = DataStore(root=str(tmp_path), seed=3).devices(10)
    path = os.path.join(str(tmp_path), "devices", "devices_10.csv")
    assert os.path.exists(path)

    # a different seed still sees the cached instance
    second = DataStore(root=str(tmp_path), seed=99).devices(10)
    assert [d["LAT"] for d in second] == [str(d["LAT"]) for d in first]


def test_no_cache_writes_nothing(tmp_path):
    store = DataStore(root=str(tmp_path), seed=3, cache=False)
    assert len(store.devices(5)) == 5
    assert not any(tmp_path.iterdir())


def test_edge_server_processing_time(tmp_path):
    servers = DataStore(root=str(tmp_path), seed=5).edge_servers(6)

    assert len(servers) == 6
    for server in servers:
        assert float(server["T_p"]) == pytest.approx(PROCESSING_WORK / float(server["PCC"]))
        assert 0 < float(server["MEM"]) <= 125.0


def test_cloud_servers_capacity(tmp_path):
    servers = DataStore(root=str(tmp_path), seed=5).cloud_servers(3)

    assert len(servers) == 3
    for server in servers:
        assert float(server["PCN"]) == CLOUD_CAPACITY["PCN"]
        assert float(server["MEM"]) == CLOUD_CAPACITY["MEM"]


def test_read_missing_table_returns_empty(tmp_path):
    assert read_table(str(tmp_path / "missing.csv")) == []


def test_write_then_read_table(tmp_path):
    path = str(tmp_path / "nested" / "table.csv")
    assert write_table(path, ["A", "B"], [{"A": 1, "B": 2.5}])
    assert read_table(path) == [{"A": "1", "B": "2.5"}]
