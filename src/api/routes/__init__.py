"""
API routes for the Cryptography Resource Manager.

This package contains all API endpoint definitions organized by feature.
"""

from src.api.routes import audit_logs, auth, health, root, users

__all__ = ["audit_logs", "auth", "health", "root", "users"]
