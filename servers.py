"""
Capacity model for edge and cloud servers.

A server has fixed capacities in five dimensions (processing capacity, cores,
memory, storage, bandwidth) and a running demand accumulator:
- Edge servers: close to devices, cheap to activate, small capacity
- Cloud servers: remote, reached through an edge hop, large capacity

The server provides methods for:
- Checking whether a device still fits (can_serve)
- Committing a device and consuming its demand (commit)
- Releasing a device and returning its demand (release)

commit() does not check capacity. Callers check can_serve() first, which lets
search code probe several servers before mutating any of them.
"""

EDGE = "E"
CLOUD = "C"


class ServerSupply:
    """Demand currently committed to a server."""

    def __init__(self):
        self.pcn = 0
        self.cnd = 0.0
        self.pcc = 0.0
        self.mem = 0.0
        self.sto = 0.0
        self.bw = 0.0
        self.devices = set()

    def __repr__(self):
        return (f"ServerSupply(pcc={self.pcc}, pcn={self.pcn}, mem={self.mem}, "
                f"sto={self.sto}, bw={self.bw}, devices={sorted(self.devices)})")


class Server:
    def __init__(self, id, lat, lon, csc, pcc, pcn, mem, sto, t_p, type=EDGE):
        self.id = id
        self.type = type
        self.lat = lat
        self.lon = lon
        self.csc = csc  # activation cost
        self.pcc_per_core = pcc
        self.pcn = pcn
        self.pcc_total = pcc * pcn
        self.mem = mem
        self.sto = sto
        self.t_p = t_p  # processing time per unit of work
        self.bw = 0.0
        self.on = False
        self.supply = ServerSupply()

    @property
    def is_edge(self):
        return self.type == EDGE

    def can_serve(self, device):
        """True if the device's demand fits in every resource dimension."""
        supply = self.supply
        return (supply.pcc + device.pcc <= self.pcc_total and
                supply.pcn + device.pcn <= self.pcn and
                supply.mem + device.mem <= self.mem and
                supply.sto + device.sto <= self.sto and
                supply.bw + device.bw <= self.bw)

    def commit(self, device, link=None):
        """
        Bind a device to this server and consume its demand.

        Args:
            device: Device to serve
            link: CandidateLink recorded on the device. Defaults to the device's
                  own candidate link for this server.

        Returns:
            False if the device is already served here, True otherwise

        Raises:
            ValueError: no link given and this server is not a candidate of the device
        """
        if device.id in self.supply.devices:
            return False
        if link is None:
            link = device.candidate(self.id)
            if link is None:
                raise ValueError(f"Server {self.id} is not a candidate of device {device.id}")

        self.supply.devices.add(device.id)
        self.on = True
        device.served = True
        device.server = link

        self.supply.cnd += device.cnd
        self.supply.pcc += device.pcc
        self.supply.pcn += device.pcn
        self.supply.mem += device.mem
        self.supply.sto += device.sto
        self.supply.bw += device.bw
        return True

    def release(self, device):
        """
        Unbind a device and give back its demand.

        Returns:
            False if the device was not served by this server, True otherwise
        """
        if device.id not in self.supply.devices:
            return False

        self.supply.devices.discard(device.id)
        device.served = False
        device.server = None

        self.supply.cnd -= device.cnd
        self.supply.pcc -= device.pcc
        self.supply.pcn -= device.pcn
        self.supply.mem -= device.mem
        self.supply.sto -= device.sto
        self.supply.bw -= device.bw

        if not self.supply.devices:
            self.on = False
        return True

    def reset(self):
        self.supply = ServerSupply()
        self.on = False

    def __repr__(self):
        return f"Server(id={self.id}, type={self.type}, on={self.on}, served={len(self.supply.devices)})"
