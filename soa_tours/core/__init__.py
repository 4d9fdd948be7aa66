# soa_tours/core/__init__.py
"""
Бизнес-логика Content Service: позиции, туры, прохождения и геометрия.
"""
