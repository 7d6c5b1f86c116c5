"""Shared dependencies for API routes."""

from fastapi import Request

from ..service import MirrorService


def get_service(request: Request) -> MirrorService:
    """The MirrorService bound to this application."""
    return request.app.state.service
