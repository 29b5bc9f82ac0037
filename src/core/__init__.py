"""
Core module for the Cryptography Resource Manager auth service.

Exports the main configuration component.
"""

from src.core.config import settings

__all__ = [
    # Config
    "settings",
]
