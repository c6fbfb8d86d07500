# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Errors tell the caller HOW to fix the request, not just WHAT failed.
#
# Every error response keeps the {"ok": false, "error": ...} envelope the
# dashboards already read, plus a machine-readable code and detail message.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class GuildApiException(Exception):
    """
    Base exception for the guild API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "GUILD_API_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result: dict[str, Any] = {
            "ok": False,
            "error": self.code.lower(),
            "code": self.code,
            "detail": self.message,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Auth Exceptions
# =============================================================================

class NotAuthenticatedError(GuildApiException):
    """Raised when the request carries no valid session cookie."""

    def __init__(self):
        super().__init__(
            message="Not signed in or session expired",
            code="UNAUTHORIZED",
            status_code=401,
            suggestion="Sign in again via /api/auth/discord/start",
        )


class ForbiddenError(GuildApiException):
    """Raised when the session lacks the role a route requires."""

    def __init__(self, required: str = "staff"):
        super().__init__(
            message=f"This action requires the {required} role",
            code="FORBIDDEN",
            status_code=403,
            details={"required": required},
        )


class InvalidSecretError(GuildApiException):
    """Raised when a machine-to-machine endpoint gets a wrong shared secret."""

    def __init__(self):
        super().__init__(
            message="Missing or invalid sync secret",
            code="UNAUTHORIZED",
            status_code=401,
            suggestion="Send the configured secret in the x-cron-secret / x-admin-secret header",
        )


# =============================================================================
# Request Exceptions
# =============================================================================

class BadRequestError(GuildApiException):
    """
    Raised for payload validation failures.

    The code doubles as the short `error` key clients switch on,
    e.g. BadRequestError("rows_required") -> {"error": "rows_required"}.
    """

    def __init__(
        self,
        error: str,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message or error.replace("_", " "),
            code=error.upper(),
            status_code=400,
            details=details,
        )


class NotFoundError(GuildApiException):
    """Raised when a referenced row does not exist."""

    def __init__(self, error: str, resource_id: Any = None):
        super().__init__(
            message=error.replace("_", " "),
            code=error.upper(),
            status_code=404,
            details={"id": resource_id} if resource_id is not None else None,
        )


class MemberNotFoundError(GuildApiException):
    """Raised when the signed-in Discord user has no member row."""

    def __init__(self, discord_user_id: str):
        super().__init__(
            message=f"No member row for Discord user {discord_user_id}",
            code="MEMBER_NOT_FOUND",
            status_code=400,
            suggestion="Open /api/member/me once to create your member profile",
            details={"discord_user_id": discord_user_id},
        )


class MethodNotAllowedError(GuildApiException):
    """Raised for verbs kept only for backwards compatibility."""

    def __init__(self):
        super().__init__(
            message="Method not allowed",
            code="METHOD_NOT_ALLOWED",
            status_code=405,
        )


# =============================================================================
# Backend Exceptions
# =============================================================================

class DatabaseError(GuildApiException):
    """Raised when a Supabase query fails."""

    def __init__(self, error: str):
        super().__init__(
            message=error,
            code="DATABASE_ERROR",
            status_code=500,
            suggestion="Try again later or contact an admin if the issue persists",
        )


class StorageUploadError(GuildApiException):
    """Raised when file upload to storage fails."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Failed to upload file to storage: {error}",
            code="STORAGE_UPLOAD_ERROR",
            status_code=500,
            suggestion="Try again later or contact an admin if the issue persists",
            details={"error": error},
        )


class UpstreamDiscordError(GuildApiException):
    """Raised when a Discord API call fails while serving a request."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Discord API request failed: {error}",
            code="DISCORD_API_ERROR",
            status_code=502,
            suggestion="Check the bot token and that the Server Members intent is enabled",
        )


class ConfigurationError(GuildApiException):
    """Raised when a feature needs a setting that is not configured."""

    def __init__(self, setting: str):
        super().__init__(
            message=f"Missing configuration: {setting}",
            code="CONFIGURATION_ERROR",
            status_code=500,
            suggestion=f"Set {setting} in the environment or .env file",
            details={"setting": setting},
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def guild_api_exception_handler(
    request: Request,
    exc: GuildApiException
) -> JSONResponse:
    """
    Convert GuildApiException to JSON response.

    Returns structured error with:
    - ok: always false
    - error: short lower-case key the dashboards switch on
    - code / detail: machine code and human-readable message
    - suggestion / details: present when available
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Malformed bodies are a client error like any other bad payload, so
    they share the 400 invalid_payload envelope.
    """
    return JSONResponse(
        status_code=400,
        content={
            "ok": False,
            "error": "invalid_payload",
            "code": "INVALID_PAYLOAD",
            "detail": "Validation error",
            "errors": str(exc),
        }
    )
