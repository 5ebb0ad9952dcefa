"""HTTP API движка привычек"""

from .app import create_app

__all__ = ['create_app']
