# soa_tours/web_client/__init__.py
"""Клиент Content Service для presentation-слоя."""

from soa_tours.web_client.poller import ExecutionPoller
from soa_tours.web_client.tour_client import ContentServiceClient

__all__ = ["ContentServiceClient", "ExecutionPoller"]
