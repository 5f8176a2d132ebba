"""
Minimum-cost allocation as a binary integer program (SciPy / HiGHS).

Variables, per covered device d and candidate server s:
    w_d     1 if device d is not served
    x_{s,d} 1 if device d is assigned to server s
    z_s     1 if server s is active

Objective:
    minimize  sum_s csc_s z_s + sum_d cnd_d w_d

Constraints:
    sum_s x_{s,d} + w_d = 1                     (at most one server per device)
    x_{s,d} - z_s <= 0                          (only active servers serve)
    sum_d r_d x_{s,d} - cap_s^r z_s <= 0        (r in pcc, pcn, mem, sto, bw)

Solver backend: scipy.optimize.milp, with a wall-clock time limit. A result
that hits the limit may be feasible without being proven optimal.
"""
import time

import numpy as np
from scipy.optimize import Bounds, LinearConstraint, milp
from scipy.sparse import coo_matrix

from metrics import MATHEMATICAL, SolverDetails
from .base import Allocator

STATUS_LABELS = {
    0: "Optimal",
    1: "Feasible",   # iteration or time limit reached
    2: "Infeasible",
    3: "Unbounded",
    4: "Error",
}

RESOURCES = [
    (lambda d: d.pcc, lambda s: s.pcc_total),
    (lambda d: d.pcn, lambda s: s.pcn),
    (lambda d: d.mem, lambda s: s.mem),
    (lambda d: d.sto, lambda s: s.sto),
    (lambda d: d.bw, lambda s: s.bw),
]


class MinimizeCost(Allocator):
    """
    Exact minimum-cost assignment.

    Formulates the allocation over the pre-calculated candidate links and hands
    it to the MILP solver. The solution is committed through Server.commit, so
    the same capacity and one-server-per-device rules hold as for the
    heuristics. Solver failures are caught here and leave the state unassigned.
    """

    simulation_type = MATHEMATICAL
    name = "Minimize_Cost"
    randomized = False

    def __init__(self, time_limit=1200.0, mip_gap=None):
        self.time_limit = time_limit
        self.mip_gap = mip_gap
        self.status = "Unknown"
        self.objective = 0.0
        self.gap = 1.0
        self.solve_time = 0.0

    def details(self):
        return SolverDetails(status=self.status, objective=self.objective, gap=self.gap)

    def build_model(self, state):
        """
        Assemble the objective, bounds and constraint matrices.

        Returns:
            (c, constraints, integrality, bounds, index) where index maps
            variable kinds to column positions: {"w": {d: col},
            "x": {(s, d): (col, link)}, "z": {s: col}}
        """
        devices, servers = state.devices, state.servers

        w_idx, x_idx, z_idx = {}, {}, {}
        col = 0
        for d_idx in state.covered:
            w_idx[d_idx] = col
            col += 1
        for d_idx in state.covered:
            for link in devices[d_idx].servers:
                x_idx[(link.server, d_idx)] = (col, link)
                col += 1
        for server in servers:
            z_idx[server.id] = col
            col += 1
        n_vars = col

        c = np.zeros(n_vars)
        for server in servers:
            c[z_idx[server.id]] = server.csc
        for d_idx in state.covered:
            c[w_idx[d_idx]] = devices[d_idx].cnd

        rows, cols, vals = [], [], []
        lb, ub = [], []

        def entry(col, val):
            rows.append(len(lb))
            cols.append(col)
            vals.append(val)

        # sum_s x + w = 1
        for d_idx in state.covered:
            entry(w_idx[d_idx], 1.0)
            for link in devices[d_idx].servers:
                entry(x_idx[(link.server, d_idx)][0], 1.0)
            lb.append(1.0)
            ub.append(1.0)

        # x - z <= 0
        for (s_idx, d_idx), (x_col, _) in x_idx.items():
            entry(x_col, 1.0)
            entry(z_idx[s_idx], -1.0)
            lb.append(-np.inf)
            ub.append(0.0)

        # capacities
        by_server = {}
        for (s_idx, d_idx), (x_col, _) in x_idx.items():
            by_server.setdefault(s_idx, []).append((d_idx, x_col))
        for s_idx, members in by_server.items():
            server = servers[s_idx]
            for demand, capacity in RESOURCES:
                for d_idx, x_col in members:
                    entry(x_col, float(demand(devices[d_idx])))
                entry(z_idx[s_idx], -float(capacity(server)))
                lb.append(-np.inf)
                ub.append(0.0)

        A = coo_matrix((vals, (rows, cols)), shape=(len(lb), n_vars)).tocsr()
        constraints = [LinearConstraint(A, np.asarray(lb), np.asarray(ub))]
        integrality = np.ones(n_vars, dtype=int)
        bounds = Bounds(np.zeros(n_vars), np.ones(n_vars))
        index = {"w": w_idx, "x": x_idx, "z": z_idx}
        return c, constraints, integrality, bounds, index

    def solve(self, state):
        """Run the solver. Returns the scipy result, or None on solver error."""
        c, constraints, integrality, bounds, index = self.build_model(state)

        options = {"disp": state.debug}
        if self.time_limit is not None:
            options["time_limit"] = float(self.time_limit)
        if self.mip_gap is not None:
            options["mip_rel_gap"] = float(self.mip_gap)

        start = time.perf_counter()
        try:
            res = milp(c=c, integrality=integrality, bounds=bounds,
                       constraints=constraints, options=options)
        except (ValueError, MemoryError, RuntimeError) as e:
            print(f"✗ Solver error: {e}")
            self.status = "Error"
            return None, index
        finally:
            self.solve_time = time.perf_counter() - start

        self.status = STATUS_LABELS.get(res.status, "Unknown")
        return res, index

    def allocate(self, state, rng):
        self.status, self.objective, self.gap = "Unknown", 0.0, 1.0
        if not state.covered:
            self.status = "Optimal"
            self.objective = state.metrics.cost_of_non_coverage
            self.gap = 0.0
            return

        res, index = self.solve(state)
        if res is None or res.x is None:
            state.log(f"No assignment produced (status {self.status})")
            return

        x = res.x
        self.objective = float(res.fun) + state.metrics.cost_of_non_coverage
        gap = getattr(res, "mip_gap", None)
        self.gap = float(gap) if gap is not None else (0.0 if res.status == 0 else 1.0)

        for d_idx in state.covered:
            if x[index["w"][d_idx]] >= 0.5:
                continue
            device = state.devices[d_idx]
            for link in device.servers:
                col, _ = index["x"][(link.server, d_idx)]
                if x[col] > 0.5:
                    server = state.servers[link.server]
                    if server.can_serve(device):
                        server.commit(device, link)
                    else:
                        state.log(f"Solver assignment of device {d_idx} to server "
                                  f"{server.id} exceeds capacity, skipped")
                    break
