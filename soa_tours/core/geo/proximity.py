# soa_tours/core/geo/proximity.py
"""
Расстояния между координатами и проверка попадания в радиус.
"""

from __future__ import annotations

import math
from typing import Iterable

from soa_tours.common.constants import EARTH_RADIUS_KM
from soa_tours.shared.models.tour import Keypoint, NearbyKeypoint


def haversine_distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Расстояние по дуге большого круга (в метрах) по формуле Haversine.

    Симметрично, для совпадающих точек равно 0. Координаты должны быть
    конечными числами в допустимых границах (проверяет PositionService).
    """
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = (math.sin(dlat / 2) ** 2 +
         math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) *
         math.sin(dlon / 2) ** 2)

    # min() защищает asin от погрешности округления чуть выше 1.0
    c = 2 * math.asin(min(1.0, math.sqrt(a)))

    return EARTH_RADIUS_KM * c * 1000.0


def is_within_radius(distance_m: float, radius_m: float) -> bool:
    """Точка внутри радиуса (граница включается)."""
    return distance_m <= radius_m


def keypoints_within_radius(
    latitude: float,
    longitude: float,
    keypoints: Iterable[Keypoint],
    radius_m: float,
) -> list[NearbyKeypoint]:
    """
    Ключевые точки в радиусе от позиции, от ближайшей к дальней.

    Args:
        latitude: Широта позиции
        longitude: Долгота позиции
        keypoints: Точки тура
        radius_m: Радиус в метрах
    """
    nearby = []
    for keypoint in keypoints:
        distance = haversine_distance_m(latitude, longitude, keypoint.latitude, keypoint.longitude)
        if is_within_radius(distance, radius_m):
            nearby.append(NearbyKeypoint(keypoint=keypoint, distance_m=round(distance, 2)))

    nearby.sort(key=lambda item: (item.distance_m, item.keypoint.order))
    return nearby
