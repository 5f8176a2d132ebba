"""
Synthetic dataset generation for allocation simulations.

Generates:
- Service profiles (core count, processing capacity, memory, storage, workload
  size and the non-service cost derived from them)
- Devices scattered over a metropolitan area, each running one service profile
- Edge servers in the same area, drawn from a set of hardware profiles
- Cloud servers at remote datacenter sites

Every table is cached as CSV under the data root and keyed by its size, so
repeated runs with the same counts see the same instance. Delete the cache to
draw a fresh one.
"""
import csv
import os

import numpy as np

# Milan metropolitan area (lat_min, lat_max, lon_min, lon_max)
AREA = (45.40, 45.54, 9.08, 9.28)

DEVICE_FIELDS = ["#", "LAT", "LON", "CND", "PCC", "PCN", "MEM", "STO", "S_d", "SVC"]
SERVER_FIELDS = ["#", "LAT", "LON", "CSC", "PCC", "PCN", "MEM", "STO", "T_p"]
SERVICE_FIELDS = ["#", "CND", "PCC", "PCN", "MEM", "STO", "S_d", "TSK"]

NUM_SERVICES = 5

# (cores, processing capacity per core, activation cost)
EDGE_PROFILES = [
    (2, 1.6, 0.00085),
    (4, 2.3, 0.00097),
    (6, 2.9, 0.00121),
    (8, 3.0, 0.00138),
    (10, 3.0, 0.00153),
]

# Cloud regions (lat, lon)
CLOUD_SITES = [
    (40.0, -83.0),    # Ohio
    (38.9, -77.4),    # Northern Virginia
    (45.8, -119.7),   # Oregon
    (50.1, 8.7),      # Frankfurt
    (53.3, -6.3),     # Dublin
    (48.9, 2.4),      # Paris
    (59.3, 18.1),     # Stockholm
    (51.5, -0.1),     # London
]
CLOUD_CAPACITY = {"CSC": 0.0025, "PCC": 3.5, "PCN": 64, "MEM": 512.0, "STO": 10000.0}

PROCESSING_WORK = 12.5


def service_cost(pcn, pcc):
    """Non-service cost of a profile: core band plus processing capacity band."""
    cnd = {1: 3, 2: 5, 3: 7, 4: 9}.get(pcn, 0)
    if 0 <= pcc < 2.5:
        cnd += 0.3
    elif 2.5 <= pcc < 5:
        cnd += 0.5
    elif 5 <= pcc < 7.5:
        cnd += 0.7
    elif 7.5 <= pcc <= 10:
        cnd += 0.9
    return cnd


def read_table(path):
    """Read a cached CSV table. Returns [] when missing or unreadable."""
    if not os.path.exists(path):
        return []
    try:
        with open(path, 'r', newline='') as f:
            return list(csv.DictReader(f))
    except (OSError, csv.Error) as e:
        print(f"✗ Could not read {path}: {e}")
        return []


def write_table(path, fields, rows):
    """Write a CSV table, creating parent directories. Returns success."""
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, 'w', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=fields)
            writer.writeheader()
            writer.writerows(rows)
        return True
    except OSError as e:
        print(f"✗ Could not write {path}: {e}")
        return False


class DataStore:
    """
    Cached synthetic tables under `root`.

    Layout:
        root/base/services.csv
        root/devices/devices_{n}.csv
        root/servers/ec_{n}.csv
        root/servers/cc_{n}.csv
    """

    def __init__(self, root="data", seed=None, cache=True):
        self.root = root
        self.rng = np.random.default_rng(seed)
        self.cache = cache

    def _cached(self, path, fields, generate):
        if self.cache:
            rows = read_table(path)
            if rows:
                return rows
        rows = generate()
        if self.cache and rows and not write_table(path, fields, rows):
            return []
        return rows

    def services(self):
        path = os.path.join(self.root, "base", "services.csv")
        return self._cached(path, SERVICE_FIELDS, self._generate_services)

    def devices(self, n):
        path = os.path.join(self.root, "devices", f"devices_{n}.csv")
        return self._cached(path, DEVICE_FIELDS, lambda: self._generate_devices(n))

    def edge_servers(self, n):
        path = os.path.join(self.root, "servers", f"ec_{n}.csv")
        return self._cached(path, SERVER_FIELDS, lambda: self._generate_edge_servers(n))

    def cloud_servers(self, n):
        path = os.path.join(self.root, "servers", f"cc_{n}.csv")
        return self._cached(path, SERVER_FIELDS, lambda: self._generate_cloud_servers(n))

    def _position(self):
        lat = self.rng.uniform(AREA[0], AREA[1])
        lon = self.rng.uniform(AREA[2], AREA[3])
        return lat, lon

    def _generate_services(self):
        services = []
        for i in range(1, NUM_SERVICES + 1):
            tsk = int(self.rng.integers(1, 5))
            pcn = int(self.rng.integers(1, 5))
            s_d = self.rng.uniform(0.00484, 12.0)
            pcc = mem = sto = 0.0
            for _ in range(tsk):
                pcc += self.rng.uniform(0.00001, 2.5)
                mem += self.rng.uniform(0.00001, 2.5)
                sto += self.rng.uniform(0.00001, 15.0)

            services.append({
                "#": i,
                "CND": service_cost(pcn, pcc),
                "PCC": pcc,
                "PCN": pcn,
                "MEM": mem,
                "STO": sto,
                "S_d": s_d,
                "TSK": tsk,
            })
        return services

    def _generate_devices(self, n):
        services = self.services()
        if not services:
            print("✗ No services data available")
            return []

        devices = []
        for i in range(n):
            lat, lon = self._position()
            service = services[int(self.rng.integers(0, len(services)))]
            devices.append({
                "#": i + 1,
                "LAT": lat,
                "LON": lon,
                "CND": service["CND"],
                "PCC": service["PCC"],
                "PCN": service["PCN"],
                "MEM": service["MEM"],
                "STO": service["STO"],
                "S_d": service["S_d"],
                "SVC": service["#"],
            })
        return devices

    def _generate_edge_servers(self, n):
        servers = []
        for i in range(n):
            lat, lon = self._position()
            pcn, pcc, csc = EDGE_PROFILES[int(self.rng.integers(0, len(EDGE_PROFILES)))]
            servers.append({
                "#": i + 1,
                "LAT": lat,
                "LON": lon,
                "CSC": csc,
                "PCC": pcc,
                "PCN": pcn,
                "MEM": self.rng.uniform(0.00001, 125.0),
                "STO": self.rng.uniform(0.00001, 1000.0),
                "T_p": PROCESSING_WORK / pcc,
            })
        return servers

    def _generate_cloud_servers(self, n):
        servers = []
        for i in range(n):
            lat, lon = CLOUD_SITES[i % len(CLOUD_SITES)]
            servers.append({
                "#": i + 1,
                "LAT": lat + self.rng.uniform(-0.05, 0.05),
                "LON": lon + self.rng.uniform(-0.05, 0.05),
                "CSC": CLOUD_CAPACITY["CSC"],
                "PCC": CLOUD_CAPACITY["PCC"],
                "PCN": CLOUD_CAPACITY["PCN"],
                "MEM": CLOUD_CAPACITY["MEM"],
                "STO": CLOUD_CAPACITY["STO"],
                "T_p": PROCESSING_WORK / CLOUD_CAPACITY["PCC"],
            })
        return servers
