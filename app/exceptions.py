# =============================================================================
# app/exceptions.py - Custom Exceptions and Handlers
# =============================================================================
# Centralized exception handling for the API.
# Every error carries a machine-readable code and, where possible, a
# suggestion telling the caller how to fix the problem.
# =============================================================================

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class SellerHubException(Exception):
    """
    Base exception for the SellerHub API.

    All custom exceptions inherit from this class and are rendered by
    `sellerhub_exception_handler` as structured JSON.
    """

    def __init__(
        self,
        message: str,
        code: str = "SELLERHUB_ERROR",
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
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Generic Resource Exceptions
# =============================================================================

class ResourceNotFoundError(SellerHubException):
    """Raised when a row doesn't exist or belongs to another tenant."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            message=f"{resource} not found: {resource_id}",
            code="RESOURCE_NOT_FOUND",
            status_code=404,
            suggestion=f"Check that the {resource} id is correct and has not been deleted",
            details={"resource": resource, "id": resource_id}
        )


class ForbiddenError(SellerHubException):
    """Raised when the caller lacks the role required for an action."""

    def __init__(self, action: str):
        super().__init__(
            message=f"Not allowed to {action}",
            code="FORBIDDEN",
            status_code=403,
            suggestion="This action requires an administrator account",
            details={"action": action}
        )


class InvalidPayloadError(SellerHubException):
    """Raised when a request body is structurally valid but unusable."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="INVALID_PAYLOAD",
            status_code=400,
            details=details
        )


# =============================================================================
# Listing Session Exceptions
# =============================================================================

class ListingSessionNotFoundError(SellerHubException):
    """Raised when a listing session doesn't exist for the caller."""

    def __init__(self, session_id: str):
        super().__init__(
            message=f"Listing session not found: {session_id}",
            code="LISTING_SESSION_NOT_FOUND",
            status_code=404,
            suggestion="Create a new session with POST /api/v1/listing-sessions",
            details={"session_id": session_id}
        )


class TaskNotFoundError(SellerHubException):
    """Raised when a background task isn't one of the caller's pipelines."""

    def __init__(self, task_id: str):
        super().__init__(
            message=f"Task not found: {task_id}",
            code="TASK_NOT_FOUND",
            status_code=404,
            suggestion="Use the task_id returned by POST /api/v1/listing-sessions/{id}/run",
            details={"task_id": task_id}
        )


class ListingSessionAbortedError(SellerHubException):
    """Raised when trying to process an aborted session."""

    def __init__(self, session_id: str):
        super().__init__(
            message=f"Listing session was aborted: {session_id}",
            code="LISTING_SESSION_ABORTED",
            status_code=409,
            suggestion="Start a new session to generate another listing",
            details={"session_id": session_id}
        )


class ListingStepOrderError(SellerHubException):
    """Raised when a step runs before the output it depends on exists."""

    def __init__(self, step: int, missing_field: str):
        super().__init__(
            message=f"Step {step} requires '{missing_field}' to be available",
            code="LISTING_STEP_ORDER",
            status_code=400,
            suggestion=f"Run step {step - 1} first" if step > 1 else "Save the product data first",
            details={"step": step, "missing_field": missing_field}
        )


class MissingProductDataError(SellerHubException):
    """Raised when product data for a listing is incomplete."""

    def __init__(self, missing: list[str]):
        super().__init__(
            message=f"Missing required product fields: {', '.join(missing)}",
            code="MISSING_PRODUCT_DATA",
            status_code=400,
            suggestion="Send every required field in PUT /listing-sessions/{id}/data",
            details={"missing_fields": missing}
        )


class ListingNotReadyError(SellerHubException):
    """Raised when downloading a listing before it has content."""

    def __init__(self, session_id: str):
        super().__init__(
            message="Listing is not ready for download",
            code="LISTING_NOT_READY",
            status_code=400,
            suggestion="Run at least steps 1 and 2 before downloading",
            details={"session_id": session_id}
        )


# =============================================================================
# Credit Exceptions
# =============================================================================

class InsufficientCreditsError(SellerHubException):
    """Raised when the balance can't cover a feature's cost."""

    def __init__(self, feature_key: str, required: int, available: int):
        super().__init__(
            message=f"Insufficient credits: {required} required, {available} available",
            code="INSUFFICIENT_CREDITS",
            status_code=402,
            suggestion="Buy more credits or upgrade your plan to use this feature",
            details={"feature_key": feature_key, "required": required, "available": available}
        )


class FeatureCostNotFoundError(SellerHubException):
    """Raised when a feature has no active cost configured."""

    def __init__(self, feature_key: str):
        super().__init__(
            message=f"Feature not configured: {feature_key}",
            code="FEATURE_NOT_FOUND",
            status_code=404,
            suggestion="Ask an administrator to add the feature to feature_costs",
            details={"feature_key": feature_key}
        )


# =============================================================================
# External Service Exceptions
# =============================================================================

class ProviderNotConfiguredError(SellerHubException):
    """Raised when a vendor is requested but has no API key."""

    def __init__(self, provider: str, env_var: str):
        super().__init__(
            message=f"Provider '{provider}' is not configured",
            code="PROVIDER_NOT_CONFIGURED",
            status_code=503,
            suggestion=f"Set {env_var} in the environment",
            details={"provider": provider}
        )


class UnsupportedModelError(SellerHubException):
    """Raised when a model is unknown or belongs to another provider."""

    def __init__(self, model: str, provider: str | None = None):
        message = f"Unsupported model: {model}"
        if provider:
            message = f"Model '{model}' is not available for provider '{provider}'"
        super().__init__(
            message=message,
            code="UNSUPPORTED_MODEL",
            status_code=400,
            suggestion="List supported models with GET /api/v1/agents/models",
            details={"model": model, "provider": provider}
        )


class ExternalServiceError(SellerHubException):
    """Raised when a third-party API call fails."""

    def __init__(
        self,
        service: str,
        error: str,
        code: str = "EXTERNAL_SERVICE_ERROR",
        suggestion: str | None = None,
    ):
        super().__init__(
            message=f"{service} request failed: {error}",
            code=code,
            status_code=502,
            suggestion=suggestion or "Try again later or contact support if the issue persists",
            details={"service": service, "error": error}
        )


class InvalidScaleError(SellerHubException):
    """Raised when an upscale factor is not supported."""

    def __init__(self, scale: int):
        super().__init__(
            message=f"Invalid scale: {scale}",
            code="INVALID_SCALE",
            status_code=400,
            suggestion="Use a scale of 2 or 4",
            details={"scale": scale}
        )


class InvalidASINError(SellerHubException):
    """Raised when no ASIN can be extracted from the input."""

    def __init__(self, value: str):
        super().__init__(
            message=f"Could not extract an ASIN from: {value}",
            code="INVALID_ASIN",
            status_code=400,
            suggestion="Send a 10-character ASIN or an Amazon product URL containing /dp/<ASIN>",
            details={"value": value}
        )


# =============================================================================
# Import Exceptions
# =============================================================================

class ImportFileError(SellerHubException):
    """Raised when an uploaded import file cannot be read."""

    def __init__(self, filename: str, error: str):
        super().__init__(
            message=f"Failed to read import file: {error}",
            code="IMPORT_FILE_ERROR",
            status_code=400,
            suggestion="Download the template and keep its header row unchanged",
            details={"filename": filename, "error": error}
        )


class FileTooLargeError(SellerHubException):
    """Raised when an uploaded file exceeds the size limit."""

    def __init__(self, size_mb: float, max_mb: int):
        super().__init__(
            message=f"File too large: {size_mb:.1f}MB (max: {max_mb}MB)",
            code="FILE_TOO_LARGE",
            status_code=413,
            suggestion=f"Upload a file smaller than {max_mb}MB",
            details={"size_mb": size_mb, "max_mb": max_mb}
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def sellerhub_exception_handler(
    request: Request,
    exc: SellerHubException
) -> JSONResponse:
    """
    Convert SellerHubException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Catch-all handler: log the traceback, hide internals from the client."""
    logger.exception(f"Unhandled exception on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR"
        }
    )
