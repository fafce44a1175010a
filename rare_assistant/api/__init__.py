"""Hosting application for the assistant UI.

Endpoints:
    - GET /health: Service health status
"""

from rare_assistant.api.app import create_app

__all__ = ["create_app"]
