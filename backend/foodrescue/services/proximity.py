# foodrescue/services/proximity.py
from math import radians, degrees, sin, cos, asin, atan2, sqrt
import random
from typing import Dict, List, Mapping, Optional, Tuple

EARTH_RADIUS_KM = 6371.0


def haversine_km(a: Mapping, b: Mapping) -> float:
    """
    a, b: mappings like {"lat": float, "lng": float}
    returns great-circle distance in km
    """
    lat1, lng1 = float(a["lat"]), float(a["lng"])
    lat2, lng2 = float(b["lat"]), float(b["lng"])
    dlat = radians(lat2 - lat1)
    dlng = radians(lng2 - lng1)
    s = sin(dlat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(dlng / 2) ** 2
    # clamp: rounding can push s a hair above 1 for antipodal points
    return 2 * EARTH_RADIUS_KM * asin(sqrt(min(1.0, s)))


def rank_shelters(donation: Mapping, shelters: List[Dict]) -> List[Tuple[Dict, float]]:
    """
    Closest shelter first; equal distances fall back to shelter id ascending.
    Shelters without coordinates are left out.
    """
    origin = donation["location"]
    scored = []
    for shelter in shelters:
        loc = shelter.get("location") or {}
        if loc.get("lat") is None or loc.get("lng") is None:
            continue
        scored.append((shelter, haversine_km(origin, loc)))
    return sorted(scored, key=lambda pair: (pair[1], str(pair[0]["id"])))


def random_point_near(lat: float, lng: float, radius_km: float,
                      rng: Optional[random.Random] = None) -> Dict[str, float]:
    """Uniformly random point within radius_km of (lat, lng)."""
    rng = rng or random
    if radius_km <= 0:
        return {"lat": lat, "lng": lng}
    bearing = rng.uniform(0, 360)
    dist = radius_km * sqrt(rng.random())
    ang = dist / EARTH_RADIUS_KM
    lat1, lng1, brg = radians(lat), radians(lng), radians(bearing)
    lat2 = asin(sin(lat1) * cos(ang) + cos(lat1) * sin(ang) * cos(brg))
    lng2 = lng1 + atan2(sin(brg) * sin(ang) * cos(lat1), cos(ang) - sin(lat1) * sin(lat2))
    lng_deg = (degrees(lng2) + 540) % 360 - 180
    return {"lat": degrees(lat2), "lng": lng_deg}
