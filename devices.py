from dataclasses import dataclass
from typing import Optional


@dataclass
class CandidateLink:
    """
    A legal device -> server assignment option, computed during pre-calculation.

    Times are in milliseconds, distance in km. `routing` is the nearest edge
    server used as the first hop and is only set for cloud links.
    """
    server: int
    distance: float = 0.0
    routing: Optional[int] = None
    connection_time: float = 0.0
    processing_time: float = 0.0
    response_time: float = 0.0


class Device:
    def __init__(self, id, lat, lon, cnd, pcc, pcn, mem, sto, s_d, svc=0):
        self.id = id
        self.lat = lat
        self.lon = lon
        self.cnd = cnd    # non-service cost, paid while covered but unserved
        self.pcc = pcc    # processing capacity units
        self.pcn = pcn    # cores
        self.mem = mem
        self.sto = sto
        self.s_d = s_d    # workload size per task
        self.svc = svc    # service profile the demand was drawn from
        self.bw = 0.0     # assigned by technology during pre-calculation
        self.covered = False
        self.served = False
        self.server = None   # committed CandidateLink
        self.servers = []    # every legal CandidateLink, fixed after pre-calculation

    def candidate(self, server_id):
        """Return the candidate link to server_id, or None if it is not legal."""
        for link in self.servers:
            if link.server == server_id:
                return link
        return None

    def reset(self):
        """Forget the committed assignment, keeping coverage and candidates."""
        self.served = False
        self.server = None

    def __repr__(self):
        target = self.server.server if self.server is not None else None
        return f"Device(id={self.id}, covered={self.covered}, served={self.served}, server={target})"
