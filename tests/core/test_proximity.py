# tests/core/test_proximity.py
"""
Тесты расчёта расстояний и проверки радиуса.
"""

from __future__ import annotations

import pytest

from soa_tours.core.geo.proximity import (
    haversine_distance_m,
    is_within_radius,
    keypoints_within_radius,
)

from conftest import CITY_HALL, FAR_AWAY, MAIN_SQUARE, NEAR_CITY_HALL


class TestHaversineDistance:
    """Тесты для haversine_distance_m."""

    def test_same_point_is_zero(self) -> None:
        """Для совпадающих точек расстояние равно 0."""
        assert haversine_distance_m(*CITY_HALL, *CITY_HALL) == 0.0

    def test_symmetric(self) -> None:
        """Расстояние не зависит от порядка точек."""
        forward = haversine_distance_m(*CITY_HALL, *MAIN_SQUARE)
        backward = haversine_distance_m(*MAIN_SQUARE, *CITY_HALL)
        assert forward == pytest.approx(backward)

    def test_city_hall_to_main_square(self) -> None:
        """Между точками демо-тура около 200 м."""
        distance = haversine_distance_m(*CITY_HALL, *MAIN_SQUARE)
        assert 180.0 < distance < 220.0

    def test_near_point(self) -> None:
        """Соседняя точка в пределах 50 м."""
        distance = haversine_distance_m(*NEAR_CITY_HALL, *CITY_HALL)
        assert 10.0 < distance < 20.0

    def test_one_degree_latitude(self) -> None:
        """Один градус широты около 111.2 км."""
        distance = haversine_distance_m(0.0, 0.0, 1.0, 0.0)
        assert distance == pytest.approx(111_195, rel=1e-3)

    def test_antipodal_points(self) -> None:
        """Противоположные точки дают половину окружности без ошибки asin."""
        distance = haversine_distance_m(0.0, 0.0, 0.0, 180.0)
        assert distance == pytest.approx(20_015_087, rel=1e-3)


class TestIsWithinRadius:
    """Тесты для is_within_radius."""

    def test_boundary_included(self) -> None:
        """Граница радиуса включается."""
        assert is_within_radius(50.0, 50.0) is True

    def test_outside(self) -> None:
        assert is_within_radius(50.01, 50.0) is False

    def test_inside(self) -> None:
        assert is_within_radius(0.0, 50.0) is True


class TestKeypointsWithinRadius:
    """Тесты для keypoints_within_radius."""

    def test_returns_only_near(self, city_hall, main_square) -> None:
        """В радиус 100 м у City Hall попадает только City Hall."""
        nearby = keypoints_within_radius(*NEAR_CITY_HALL, [city_hall, main_square], 100.0)

        assert [item.keypoint.id for item in nearby] == [city_hall.id]
        assert nearby[0].distance_m < 20.0

    def test_sorted_by_distance(self, city_hall, main_square) -> None:
        """Точки идут от ближайшей к дальней."""
        nearby = keypoints_within_radius(*MAIN_SQUARE, [city_hall, main_square], 500.0)

        assert [item.keypoint.name for item in nearby] == ["Main Square", "City Hall"]
        assert nearby[0].distance_m == 0.0

    def test_nothing_near(self, city_hall, main_square) -> None:
        assert keypoints_within_radius(*FAR_AWAY, [city_hall, main_square], 100.0) == []

    def test_empty_keypoints(self) -> None:
        assert keypoints_within_radius(*CITY_HALL, [], 100.0) == []
