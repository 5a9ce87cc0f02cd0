"""
Custom Exceptions for TeamSync
==============================

Usage:
    from teamsync.core.exceptions import ChannelNotFoundError, PersistenceError

    if not channel:
        raise ChannelNotFoundError(channel_id)

    try:
        await store.create_message(...)
    except PersistenceError as e:
        logger.warning(f"Message dropped: {e}")
"""

from typing import Optional, Any, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class TeamSyncError(Exception):
    """Base exception for all TeamSync errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Authentication Errors
# ============================================

class AuthenticationError(TeamSyncError):
    """Handshake identity could not be established"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class InvalidTokenError(AuthenticationError):
    """JWT token is invalid or expired"""

    def __init__(self):
        super().__init__("Invalid token")
        self.code = "INVALID_TOKEN"


class IdentityMismatchError(AuthenticationError):
    """Claimed participant does not match the verified token subject"""

    def __init__(self, claimed: str):
        super().__init__(f"Token does not belong to participant '{claimed}'")
        self.code = "IDENTITY_MISMATCH"
        self.details = {"participant_id": claimed}


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(TeamSyncError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class ChannelNotFoundError(ResourceNotFoundError):
    """Channel not found"""

    def __init__(self, channel_id: str):
        super().__init__("Channel", channel_id)


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(TeamSyncError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class ProtocolViolationError(ValidationError):
    """Realtime event is malformed or targets the wrong channel"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, field=field)
        self.code = "PROTOCOL_VIOLATION"


# ============================================
# Storage Errors
# ============================================

class PersistenceError(TeamSyncError):
    """Persistence gateway could not complete the write/read"""

    status_code = 503

    def __init__(self, message: str, operation: Optional[str] = None):
        details = {"operation": operation} if operation else {}
        super().__init__(message, code="PERSISTENCE_FAILED", details=details)


# ============================================
# Helper functions for API responses
# ============================================

def error_response(error: TeamSyncError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "error": error.to_dict()
    }


def register_exception_handlers(app: FastAPI) -> None:
    """Render TeamSyncError subclasses as JSON with their status code."""

    @app.exception_handler(TeamSyncError)
    async def _teamsync_error_handler(request: Request, exc: TeamSyncError):
        return JSONResponse(status_code=exc.status_code, content=error_response(exc))
