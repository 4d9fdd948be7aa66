# soa_tours/config/__init__.py
"""
Модуль конфигурации.
Экспортирует настройки приложения.
"""

from soa_tours.config.loader import Settings, get_settings, settings

__all__ = ["Settings", "get_settings", "settings"]
