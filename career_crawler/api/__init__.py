"""
API Module
FastAPI Status-Server
"""

from .main import create_status_app

__all__ = ["create_status_app"]
