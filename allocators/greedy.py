from network import ConfigurationError
from netmath import sort_indices
from .base import Allocator

VARIANTS = {
    "Greedy_AscAsc": (True, True),
    "Greedy_AscDesc": (True, False),
    "Greedy_DescAsc": (False, True),
    "Greedy_DescDesc": (False, False),
}


class Greedy(Allocator):
    """
    Greedy allocation by non-service cost and response time.

    Covered devices are visited sorted by non-service cost (ties by device index
    ascending in both directions). Each device tries its candidate servers
    sorted by response time and is committed to the first one with enough
    capacity, else it stays unserved.

    Four variants come from the two direction flags, named
    Greedy_{Asc|Desc}{Asc|Desc} (devices first, servers second).
    Greedy_DescAsc serves the most expensive devices first on their fastest
    server and is the usual starting point for simulated annealing.
    """

    randomized = False

    def __init__(self, devices_ascending=False, servers_ascending=True):
        self.devices_ascending = devices_ascending
        self.servers_ascending = servers_ascending
        self.name = "Greedy_{}{}".format("Asc" if devices_ascending else "Desc",
                                         "Asc" if servers_ascending else "Desc")

    @classmethod
    def from_name(cls, name):
        if name not in VARIANTS:
            raise ConfigurationError(f"Unknown greedy variant: {name}")
        devices_ascending, servers_ascending = VARIANTS[name]
        return cls(devices_ascending, servers_ascending)

    def device_order(self, state):
        return sort_indices(state.devices, state.covered, key=lambda d: d.cnd,
                            ascending=self.devices_ascending)

    def server_order(self, device):
        # Stable sort on a copy: candidate lists are fixed after pre-calculation
        return sorted(device.servers, key=lambda link: link.response_time,
                      reverse=not self.servers_ascending)

    def allocate(self, state, rng):
        for d_idx in self.device_order(state):
            device = state.devices[d_idx]
            for link in self.server_order(device):
                server = state.servers[link.server]
                if server.can_serve(device):
                    server.commit(device, link)
                    state.log(f"Device {device.id} (cnd={device.cnd}) -> server {server.id}")
                    break
            else:
                state.log(f"Device {device.id} (cnd={device.cnd}) left unserved")
