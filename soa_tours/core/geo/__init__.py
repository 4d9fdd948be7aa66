# soa_tours/core/geo/__init__.py
from soa_tours.core.geo.proximity import haversine_distance_m, is_within_radius, keypoints_within_radius

__all__ = ["haversine_distance_m", "is_within_radius", "keypoints_within_radius"]
