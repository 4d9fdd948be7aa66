# soa_tours/core/positions/__init__.py
from soa_tours.core.positions.repository import PositionRepository
from soa_tours.core.positions.service import PositionService

__all__ = ["PositionRepository", "PositionService"]
