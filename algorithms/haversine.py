"""
Haversine Algorithm - Calculate distance between two geographical points
Used to find donors nearest to a patient and to resolve the nearest major city
"""

import math
from collections.abc import Mapping

from algorithms.constants import EARTH_RADIUS_KM
from algorithms.records import get_field

# Major Indian cities with coordinates
CITY_COORDINATES = {
    'Mumbai': (19.0760, 72.8777),
    'Delhi': (28.6139, 77.2090),
    'Bangalore': (12.9716, 77.5946),
    'Chennai': (13.0827, 80.2707),
    'Kolkata': (22.5726, 88.3639),
    'Hyderabad': (17.3850, 78.4867),
    'Pune': (18.5204, 73.8567),
    'Ahmedabad': (23.0225, 72.5714),
    'Jaipur': (26.9124, 75.7873),
    'Lucknow': (26.8467, 80.9462),
    'Surat': (21.1702, 72.8311),
    'Kanpur': (26.4499, 80.3319),
    'Nagpur': (21.1458, 79.0882),
    'Indore': (22.7196, 75.8577),
    'Thane': (19.2183, 72.9781),
    'Bhopal': (23.2599, 77.4126),
    'Visakhapatnam': (17.6868, 83.2185),
    'Patna': (25.5941, 85.1376),
    'Vadodara': (22.3072, 73.1812),
    'Coimbatore': (11.0168, 76.9558),
}


def haversine_distance(lat1, lon1, lat2, lon2):
    """
    Calculate straight-line distance between two points.
    Note: This is "as the crow flies" distance, not road distance.

    Args:
        lat1, lon1: Latitude and longitude of point 1 (patient)
        lat2, lon2: Latitude and longitude of point 2 (donor)

    Returns:
        Distance in kilometers
    """
    # Convert decimal degrees to radians
    lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])

    # Haversine formula
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = math.sin(dlat/2)**2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon/2)**2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return c * EARTH_RADIUS_KM


def as_point(location):
    """
    (lat, lng) from a tuple/list or a {'lat', 'lng'} mapping; None if incomplete
    """
    if location is None:
        return None
    if isinstance(location, Mapping):
        lat = location.get('lat', location.get('latitude'))
        lng = location.get('lng', location.get('longitude'))
    else:
        try:
            lat, lng = location
        except (TypeError, ValueError):
            return None
    if lat is None or lng is None:
        return None
    try:
        return float(lat), float(lng)
    except (TypeError, ValueError):
        return None


def donor_coordinates(donor):
    """Donor's (lat, lng) from latitude/longitude or a location mapping."""
    lat = get_field(donor, 'latitude', 'lat')
    lng = get_field(donor, 'longitude', 'lng')
    if lat is not None and lng is not None:
        return as_point((lat, lng))
    return as_point(get_field(donor, 'location'))


def get_city_coords(city_name):
    """Coordinates of a known city (case-insensitive), or None"""
    if not city_name:
        return None
    wanted = city_name.strip().lower()
    for name, coords in CITY_COORDINATES.items():
        if name.lower() == wanted:
            return coords
    return None


def find_nearest_city(lat, lng):
    """
    Nearest major city to a point

    Returns:
        Tuple (city_name, distance_km) or None when the table is empty
    """
    nearest = None
    for name, (city_lat, city_lng) in CITY_COORDINATES.items():
        distance = haversine_distance(lat, lng, city_lat, city_lng)
        if nearest is None or distance < nearest[1]:
            nearest = (name, distance)
    return nearest
