"""
Main module - Composition Root Layer

Wires settings, infrastructure and use cases together for the two entry
points: the Celery worker and the FastAPI health application.
"""

from .config import AppSettings, get_settings
from .container import AppContainer, get_container, init_container

__all__ = [
    "AppSettings",
    "get_settings",
    "AppContainer",
    "init_container",
    "get_container",
]
