# app/services/geo.py
import math

EARTH_RADIUS_M = 6371e3

def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distância haversine em metros."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
