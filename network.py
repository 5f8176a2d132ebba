"""
Run state and pre-calculation pipeline for device-to-server allocation.

Pre-calculation runs once per simulation and builds the substrate every
allocation strategy works on:
- Bandwidth assignment (technology data rate for devices, backbone for servers)
- Coverage: edge servers within the technology radius become candidates, and
  covered devices additionally get every cloud server as a candidate
- Timing: connection, processing and response time of every candidate link

Candidate lists and routing hints never change afterwards. Strategies only
mutate the served/server fields of devices and the server demand accumulators.
"""
import copy
import random

from dataset import DataStore
from devices import CandidateLink, Device
from metrics import Metrics
from netmath import (EARTH_RADIUS_KM, EC_TO_CC_DATA_RATE_MBPS, INTER_DC_LATENCY_MS,
                     SPEED_OF_LIGHT_KM_S, entity_distance, tech_params)
from servers import CLOUD, EDGE, Server

# Top of the non-service cost scale produced by dataset.py (9 for 4 cores + 0.9)
MAX_NON_SERVICE_COST = 9.9
BOTTLENECK_FILL = 0.999999


class ConfigurationError(ValueError):
    """Invalid run parameters: counts, technology or algorithm name."""


class DataError(RuntimeError):
    """Backing data missing or unusable, so no run state can be built."""


class RunState:
    def __init__(self, devices, servers, covered, metrics, debug=False):
        self.devices = devices
        self.servers = servers
        self.covered = covered  # indices of covered devices
        self.metrics = metrics
        self.debug = debug

    def log(self, msg):
        if self.debug:
            print(f"[{self.metrics.algorithm}] {msg}")

    def copy(self):
        """Independent deep copy, demand accumulators included."""
        return copy.deepcopy(self)

    def edge_servers(self):
        return [s for s in self.servers if s.type == EDGE]

    def cloud_servers(self):
        return [s for s in self.servers if s.type == CLOUD]

    def reset_assignment(self):
        """Drop every committed assignment, keeping the pre-calculated data."""
        for device in self.devices:
            device.reset()
        for server in self.servers:
            server.reset()

    def assignment(self):
        """Map of device index -> committed server index, for served devices."""
        return {d.id: d.server.server for d in self.devices if d.served}


def _log_error(msg):
    print(f"✗ {msg}")


def load_devices(records):
    """
    Build the device list from tabular records.

    Each record is a dict with LAT, LON, CND, PCC, PCN, MEM, STO, S_d and SVC
    columns. Devices are numbered 0..n-1 in record order; malformed records are
    reported and skipped.
    """
    devices = []
    for record in records:
        try:
            devices.append(Device(
                id=len(devices),
                lat=float(record["LAT"]),
                lon=float(record["LON"]),
                cnd=float(record["CND"]),
                pcc=float(record["PCC"]),
                pcn=int(record["PCN"]),
                mem=float(record["MEM"]),
                sto=float(record["STO"]),
                s_d=float(record["S_d"]),
                svc=int(record.get("SVC", 0)),
            ))
        except (KeyError, TypeError, ValueError) as e:
            _log_error(f"Skipping malformed device record {record!r}: {e}")
    return devices


def load_servers(ec_records, cc_records):
    """
    Build one server list, edge servers first and cloud servers after.

    Records carry LAT, LON, CSC, PCC (per core), PCN, MEM, STO and T_p columns.
    """
    servers = []

    def parse(records, server_type):
        for record in records:
            try:
                servers.append(Server(
                    id=len(servers),
                    lat=float(record["LAT"]),
                    lon=float(record["LON"]),
                    csc=float(record["CSC"]),
                    pcc=float(record["PCC"]),
                    pcn=int(record["PCN"]),
                    mem=float(record["MEM"]),
                    sto=float(record["STO"]),
                    t_p=float(record["T_p"]),
                    type=server_type,
                ))
            except (KeyError, TypeError, ValueError) as e:
                _log_error(f"Skipping malformed server record {record!r}: {e}")

    parse(ec_records, EDGE)
    parse(cc_records, CLOUD)
    return servers


def bandwidth(devices, servers, data_rate):
    for device in devices:
        device.bw = data_rate
    for server in servers:
        server.bw = EC_TO_CC_DATA_RATE_MBPS


def find_covering(devices, servers, radius, metrics):
    """
    Mark covered devices and record their candidate links.

    A device is covered when at least one edge server lies within `radius` km.
    Covered devices also get every cloud server as a candidate, since cloud
    access goes through edge coverage. Uncovered devices add their non-service
    cost to the non-coverage cost.

    Returns:
        List of covered device indices
    """
    covered = []
    for device in devices:
        for server in servers:
            if server.type != EDGE:
                continue
            dist = entity_distance(device, server)
            if dist <= radius:
                device.servers.append(CandidateLink(server=server.id, distance=dist))
                device.covered = True

        if device.covered:
            covered.append(device.id)
            for server in servers:
                if server.type == CLOUD:
                    device.servers.append(CandidateLink(server=server.id))
        else:
            metrics.cost_of_non_coverage += device.cnd

    metrics.devices_covered_count = len(covered)
    return covered


def time_calculation(devices, servers):
    """
    Fill connection, processing and response time of every candidate link.

    Edge links: transmission + propagation over the device -> edge distance.
    Cloud links: transmission + propagation over device -> nearest edge -> cloud
    + the fixed inter-datacenter latency. All times in ms.
    """
    for device in devices:
        if not device.covered:
            continue

        nearest, nearest_distance = None, EARTH_RADIUS_KM
        for link in device.servers:
            if servers[link.server].type == EDGE and link.distance < nearest_distance:
                nearest, nearest_distance = link.server, link.distance

        transmission_ms = device.s_d / device.bw * 1000.0
        for link in device.servers:
            server = servers[link.server]
            link.processing_time = device.s_d * server.t_p

            if server.type == CLOUD:
                link.routing = nearest
                hops = nearest_distance + entity_distance(servers[nearest], server)
                propagation_ms = hops / SPEED_OF_LIGHT_KM_S * 1000.0
                link.connection_time = transmission_ms + propagation_ms + INTER_DC_LATENCY_MS
            else:
                propagation_ms = link.distance / SPEED_OF_LIGHT_KM_S * 1000.0
                link.connection_time = transmission_ms + propagation_ms
            link.response_time = link.connection_time + link.processing_time


def coverage(devices, servers, metrics):
    """
    Run bandwidth, coverage and timing for metrics.tech.

    Returns:
        List of covered device indices
    """
    radius, data_rate = tech_params(metrics.tech)
    if radius < 0:
        raise ConfigurationError(f"Unknown network technology: {metrics.tech}")

    bandwidth(devices, servers, data_rate)
    covered = find_covering(devices, servers, radius, metrics)
    time_calculation(devices, servers)
    return covered


def validate_inputs(num_devices, num_ec, num_cc, tech):
    if num_devices <= 0 or num_ec <= 0 or num_cc <= 0:
        raise ConfigurationError("Number of devices and servers must be positive")
    if tech_params(tech)[0] < 0:
        raise ConfigurationError(f"Unknown network technology: {tech}")


def build_state(devices, servers, metrics, debug=False):
    """Run coverage on already loaded entities and wrap them in a RunState."""
    if not devices or not servers:
        raise DataError("Failed to load device or server data")
    if not any(s.type == EDGE for s in servers):
        raise DataError("No edge servers loaded")

    covered = coverage(devices, servers, metrics)
    state = RunState(devices, servers, covered, metrics, debug=debug)
    state.log(f"{len(covered)}/{len(devices)} devices covered, "
              f"non-coverage cost {metrics.cost_of_non_coverage:.4f}")
    return state


def pre_calculation(simulation_type, algorithm, num_devices, num_ec, num_cc, tech,
                    store=None, debug=False):
    """
    Prepare the initial state of a simulation.

    Args:
        simulation_type: Heuristic, MetaHeuristic or Mathematical
        algorithm: Algorithm label recorded in the metrics
        num_devices, num_ec, num_cc: Entity counts (all positive)
        tech: Network technology id 1..6
        store: dataset.DataStore providing the records (defaults to ./data)
        debug: Print trace lines

    Raises:
        ConfigurationError: invalid counts or technology
        DataError: missing or empty backing data
    """
    validate_inputs(num_devices, num_ec, num_cc, tech)

    if store is None:
        store = DataStore()

    devices = load_devices(store.devices(num_devices))
    servers = load_servers(store.edge_servers(num_ec), store.cloud_servers(num_cc))

    # percentages are taken over what was actually loaded, not what was requested
    metrics = Metrics(simulation_type, algorithm, devices=len(devices),
                      servers_ec=sum(1 for s in servers if s.type == EDGE),
                      servers_cc=sum(1 for s in servers if s.type == CLOUD), tech=tech)
    return build_state(devices, servers, metrics, debug=debug)


def create_bottleneck(state, random_bottleneck=False, rng=None):
    """
    Saturate the cloud servers with one oversized device each.

    For every cloud server, the next covered device gets memory and storage
    demand just under that server's capacity and the highest non-service cost,
    so greedy heuristics pick it first and it fills the server. Must run after
    pre-calculation and before any strategy.

    Args:
        state: RunState from pre_calculation
        random_bottleneck: Pick the devices in random order instead of the
                           first covered ones
        rng: random.Random used when random_bottleneck is set

    Returns:
        Indices of the modified devices
    """
    indices = list(state.covered)
    if random_bottleneck:
        if rng is None:
            rng = random.Random()
        rng.shuffle(indices)

    modified = []
    for target, d_idx in zip(state.cloud_servers(), indices):
        device = state.devices[d_idx]
        device.mem = target.mem * BOTTLENECK_FILL
        device.sto = target.sto * BOTTLENECK_FILL
        device.cnd = MAX_NON_SERVICE_COST
        modified.append(d_idx)
        state.log(f"Bottleneck device {d_idx} sized for cloud server {target.id}")
    return modified
