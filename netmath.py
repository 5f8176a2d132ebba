"""
Geographic, timing and ordering helpers shared by the allocation engine.

Provides:
- Distance between coordinates (equirectangular approximation at short range,
  haversine great-circle distance otherwise)
- Network technology lookup (coverage radius and data rate per generation)
- Deterministic index sorting with tie-breaking on the original index
- Small randomness and formatting helpers
"""
import math

EARTH_RADIUS_KM = 6371.0088
SPEED_OF_LIGHT_KM_S = 299792.458
# Milan -> Ohio datacenter round trip, measured 2024-12-18
INTER_DC_LATENCY_MS = 111.86
EC_TO_CC_DATA_RATE_MBPS = 100000.0

PLANAR_THRESHOLD_KM = 1.5

# tech id -> (coverage radius km, data rate Mbps)
TECHNOLOGIES = {
    1: (20.0, 0.0024),   # 1G+
    2: (10.0, 0.064),    # 2G
    3: (5.0, 2.0),       # 3G
    4: (3.0, 100.0),     # 4G
    5: (0.6, 1000.0),    # 5G
    6: (0.32, 10000.0),  # 6G
}


def haversine(lat1_rad, lon1_rad, lat2_rad, lon2_rad):
    """Great-circle distance in km. Inputs are in radians."""
    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad
    a = math.sin(dlat / 2.0) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2.0) ** 2
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_KM * c


def distance(lat1, lon1, lat2, lon2):
    """
    Distance in km between two coordinates given in degrees.

    Uses a local equirectangular approximation first; below 1.5 km that is
    returned as is, longer distances fall back to the haversine formula.
    """
    lat1_rad = math.radians(lat1)
    lon1_rad = math.radians(lon1)
    lat2_rad = math.radians(lat2)
    lon2_rad = math.radians(lon2)

    x = (lon2_rad - lon1_rad) * math.cos((lat1_rad + lat2_rad) / 2.0)
    y = lat2_rad - lat1_rad
    planar = math.sqrt(x * x + y * y) * EARTH_RADIUS_KM
    if planar < PLANAR_THRESHOLD_KM:
        return planar

    return haversine(lat1_rad, lon1_rad, lat2_rad, lon2_rad)


def entity_distance(a, b):
    """Distance between any two objects exposing lat/lon (devices, servers)."""
    return distance(a.lat, a.lon, b.lat, b.lon)


def tech_params(tech):
    """
    Look up (coverage radius km, data rate Mbps) for a technology id 1..6.

    Returns (-1.0, -1.0) for an unknown id.
    """
    return TECHNOLOGIES.get(tech, (-1.0, -1.0))


def sort_indices(entities, indices, key, ascending=True):
    """
    Sort a subset of entity indices by an attribute accessor.

    Ties are always broken by index ascending, whatever the direction, so equal
    entities are visited in a reproducible order.

    Args:
        entities: Indexable container of entities
        indices: Iterable of indices into entities
        key: Callable returning the attribute to sort by
        ascending: Sort direction for the attribute

    Returns:
        New list of sorted indices
    """
    if ascending:
        return sorted(indices, key=lambda i: (key(entities[i]), i))
    return sorted(indices, key=lambda i: (-key(entities[i]), i))


def shuffled_range(lo, hi, rng):
    """All integers in [lo, hi] in random order."""
    if lo > hi:
        raise ValueError("shuffled_range: lo cannot be greater than hi")
    numbers = list(range(lo, hi + 1))
    rng.shuffle(numbers)
    return numbers


def to_percentage(numerator, denominator):
    if denominator == 0:
        return 0.0
    return numerator / denominator * 100.0
