"""Dependency injection for FastAPI endpoints"""

from fastapi import Request

from issuing_console.infrastructure.clients.backend import BackendClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_backend_client(request: Request) -> BackendClient:
    """Provide card backend client, forwarding the caller's bearer token"""
    authorization = request.headers.get("Authorization", "")
    token = authorization[7:] if authorization.lower().startswith("bearer ") else None
    return BackendClient(token=token)
