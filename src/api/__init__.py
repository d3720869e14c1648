"""API Module.

Webhook платформы MAX и health check.
"""

from src.api.routes import router

__all__ = ["router"]
