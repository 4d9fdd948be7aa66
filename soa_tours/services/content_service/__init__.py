# soa_tours/services/content_service/__init__.py
"""Content Service: туры, позиции и прохождение туров."""
