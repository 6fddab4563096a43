"""
Core Package - Configuration and service wiring

This package contains the settings and the long-lived service container.
"""

# Import core components
from .config import settings, Settings
from .backend import SearchBackend

__all__ = [
    'settings',
    'Settings',
    'SearchBackend',
]
