"""
app/api/deps.py

Purpose: Request-scoped access to the service container
"""

from fastapi import Request

from app.core.container import ServiceContainer


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container
