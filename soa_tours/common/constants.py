# soa_tours/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class TourStatus(str, Enum):
    """Статусы тура."""
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class TourDifficulty(str, Enum):
    """Сложность тура."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class ExecutionStatus(str, Enum):
    """Статусы прохождения тура."""
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


# Радиус Земли в километрах (формула Haversine)
EARTH_RADIUS_KM = 6371.0

# Радиус засчитывания ключевой точки (метры)
DEFAULT_COMPLETION_RADIUS_M = 50.0

# Радиус подсказки "рядом с точкой" (метры)
DEFAULT_NEARBY_RADIUS_M = 100.0

# Интервал опроса check-keypoints в клиенте (секунды)
DEFAULT_CHECK_INTERVAL_SECONDS = 10.0
