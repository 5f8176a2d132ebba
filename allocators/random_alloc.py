from .base import Allocator


class RandomAllocator(Allocator):
    """
    Random allocation.

    Visits covered devices in a uniformly shuffled order. Each device draws an
    index in [0, number of candidates]; the top value rejects the device, which
    models arrival randomness by leaving some devices unserved even when
    capacity is available. Any other draw picks that candidate, which is
    committed only if the server can still serve the device.

    Properties: No ordering, no backtracking. Useful as a baseline and as a
    randomized starting point for simulated annealing.
    """

    name = "Random"
    randomized = True

    def allocate(self, state, rng):
        order = list(state.covered)
        rng.shuffle(order)

        for d_idx in order:
            device = state.devices[d_idx]
            if not device.servers:
                continue

            pick = rng.randint(0, len(device.servers))
            if pick == len(device.servers):
                state.log(f"Device {device.id} REJECTED by draw")
                continue

            link = device.servers[pick]
            server = state.servers[link.server]
            if server.can_serve(device):
                server.commit(device, link)
                state.log(f"Device {device.id} -> server {server.id} (rt={link.response_time:.3f})")
