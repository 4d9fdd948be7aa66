# soa_tours/shared/__init__.py
"""
Общий код Content Service.

Модули:
- events: схемы событий RabbitMQ
- models: DTO и Pydantic-модели (туры, позиции, прохождения)
"""

__all__: list[str] = []
