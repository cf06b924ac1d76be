"""
Geographic helpers shared by matching, budgeting and map clustering.

Contractors describe where they work with free‑text service area
names ("Auckland", "Canterbury", "Nationwide").  The gazetteer below
resolves those names to a centre point and a coverage radius so that
the matching scorer can measure how far an event is from the nearest
area.  Coordinates are approximate city or region centres.
"""

import math
from typing import Dict, NamedTuple, Optional


EARTH_RADIUS_KM = 6371.0


class ServiceArea(NamedTuple):
    name: str
    lat: float
    lng: float
    radius_km: float


NZ_SERVICE_AREAS: Dict[str, ServiceArea] = {
    area.name: area
    for area in (
        ServiceArea("auckland", -36.8485, 174.7633, 40.0),
        ServiceArea("wellington", -41.2865, 174.7762, 30.0),
        ServiceArea("christchurch", -43.5321, 172.6362, 30.0),
        ServiceArea("hamilton", -37.7870, 175.2793, 25.0),
        ServiceArea("tauranga", -37.6878, 176.1651, 25.0),
        ServiceArea("dunedin", -45.8788, 170.5028, 25.0),
        ServiceArea("queenstown", -45.0312, 168.6626, 20.0),
        ServiceArea("napier", -39.4928, 176.9120, 20.0),
        ServiceArea("nelson", -41.2706, 173.2840, 20.0),
        ServiceArea("rotorua", -38.1368, 176.2497, 20.0),
        ServiceArea("palmerston north", -40.3523, 175.6082, 20.0),
        ServiceArea("new plymouth", -39.0556, 174.0752, 20.0),
        ServiceArea("whangarei", -35.7251, 174.3237, 20.0),
        ServiceArea("invercargill", -46.4132, 168.3538, 20.0),
        ServiceArea("northland", -35.5000, 174.0000, 110.0),
        ServiceArea("waikato", -37.9000, 175.4000, 90.0),
        ServiceArea("bay of plenty", -38.0000, 176.6000, 80.0),
        ServiceArea("canterbury", -43.6000, 172.0000, 120.0),
        ServiceArea("otago", -45.3000, 169.8000, 130.0),
        ServiceArea("nationwide", -41.0000, 174.0000, 1000.0),
    )
}

_ALIASES = {
    "akl": "auckland",
    "wgtn": "wellington",
    "chch": "christchurch",
    "all of new zealand": "nationwide",
    "new zealand": "nationwide",
    "nz": "nationwide",
}


def normalise_area_name(name: str) -> str:
    key = " ".join(name.lower().split())
    if key.endswith(" region"):
        key = key[: -len(" region")]
    return _ALIASES.get(key, key)


def resolve_service_area(name: str) -> Optional[ServiceArea]:
    """Look up a service area by name; ``None`` when it is not known."""
    return NZ_SERVICE_AREAS.get(normalise_area_name(name))


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great‑circle distance between two points in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))
