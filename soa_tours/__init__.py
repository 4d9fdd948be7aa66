# soa_tours/__init__.py
"""
SOA Tours: Content Service.

Туры с ключевыми точками, симулятор позиции пользователя
и отслеживание прохождения тура (tour execution).
"""

__version__ = "1.0.0"
