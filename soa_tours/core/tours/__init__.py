# soa_tours/core/tours/__init__.py
from soa_tours.core.tours.repository import TourRepository
from soa_tours.core.tours.service import TourService

__all__ = ["TourRepository", "TourService"]
