# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Every error carries a machine-readable code and, where possible, a
# suggestion that tells the caller HOW to fix it, not just WHAT failed.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class GovContractException(Exception):
    """
    Base exception for the GovContract API.

    Raised by services and routers; converted to a JSON response by
    `govcontract_exception_handler`.
    """

    def __init__(
        self,
        message: str,
        code: str = "GOVCONTRACT_ERROR",
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


class BadRequestError(GovContractException):
    """Generic 400 for request payloads that pass schema validation but not business rules."""

    def __init__(self, message: str, code: str = "BAD_REQUEST", suggestion: str | None = None, details: dict[str, Any] | None = None):
        super().__init__(message=message, code=code, status_code=400, suggestion=suggestion, details=details)


# =============================================================================
# Profile / Company Exceptions
# =============================================================================

class ProfileNotFoundError(GovContractException):
    """Raised when the authenticated user has no profiles row."""

    def __init__(self, user_id: str):
        super().__init__(
            message="Profile not found",
            code="PROFILE_NOT_FOUND",
            status_code=404,
            suggestion="Finish account setup with POST /api/v1/auth/setup-profile",
            details={"user_id": user_id}
        )


class CompanyNotFoundError(GovContractException):
    """Raised when the user's profile is not linked to a company."""

    def __init__(self, company_id: str | None = None):
        super().__init__(
            message="No company found for this user",
            code="COMPANY_NOT_FOUND",
            status_code=404,
            suggestion="Create a company profile with POST /api/v1/companies",
            details={"company_id": company_id} if company_id else None
        )


class PermissionDeniedError(GovContractException):
    """Raised when the user's role does not allow the action."""

    def __init__(self, action: str, required: list[str] | None = None):
        super().__init__(
            message=f"Insufficient permissions to {action}",
            code="PERMISSION_DENIED",
            status_code=403,
            suggestion="Ask a company owner or admin to perform this action" if required else None,
            details={"required_roles": required} if required else None
        )


# =============================================================================
# Opportunity / Application Exceptions
# =============================================================================

class OpportunityNotFoundError(GovContractException):
    """Raised when an opportunity ID doesn't exist."""

    def __init__(self, opportunity_id: str):
        super().__init__(
            message=f"Opportunity not found: {opportunity_id}",
            code="OPPORTUNITY_NOT_FOUND",
            status_code=404,
            suggestion="Search for current opportunities with GET /api/v1/opportunities",
            details={"opportunity_id": opportunity_id}
        )


class ApplicationNotFoundError(GovContractException):
    """Raised when an application ID doesn't exist or belongs to another company."""

    def __init__(self, application_id: str):
        super().__init__(
            message=f"Application not found: {application_id}",
            code="APPLICATION_NOT_FOUND",
            status_code=404,
            suggestion="Check that the application_id is correct",
            details={"application_id": application_id}
        )


class ApplicationExistsError(GovContractException):
    """Raised when a company applies twice to the same opportunity."""

    def __init__(self, opportunity_id: str, application_id: str | None = None):
        super().__init__(
            message="Application already exists for this opportunity",
            code="APPLICATION_EXISTS",
            status_code=409,
            suggestion="Update the existing application instead of creating a new one",
            details={"opportunity_id": opportunity_id, "application_id": application_id}
        )


class JurisdictionAccessError(GovContractException):
    """Raised when the company's plan does not cover the opportunity's jurisdiction."""

    def __init__(self, jurisdiction: str, allowed: list[str]):
        super().__init__(
            message=f"Access denied to {jurisdiction} opportunities",
            code="JURISDICTION_NOT_ALLOWED",
            status_code=403,
            suggestion="Upgrade your subscription to unlock this jurisdiction",
            details={"jurisdiction": jurisdiction, "allowed_jurisdictions": allowed}
        )


class ApplicationLockedError(GovContractException):
    """Raised when a submitted application is edited beyond status/notes, or a non-draft is deleted."""

    def __init__(self, application_id: str, status: str, action: str = "modify"):
        super().__init__(
            message=f"Cannot {action} application in status '{status}'",
            code="APPLICATION_LOCKED",
            status_code=400,
            suggestion="Only draft applications can be edited freely or deleted",
            details={"application_id": application_id, "status": status}
        )


class InvalidStatusTransitionError(GovContractException):
    """Raised when a status change skips or reverses the application lifecycle."""

    def __init__(self, current: str, requested: str, allowed: list[str]):
        super().__init__(
            message=f"Cannot move application from '{current}' to '{requested}'",
            code="INVALID_STATUS_TRANSITION",
            status_code=400,
            suggestion=f"Allowed next statuses: {', '.join(allowed) or 'none (final state)'}",
            details={"current": current, "requested": requested, "allowed": allowed}
        )


# =============================================================================
# Billing Exceptions
# =============================================================================

class PaymentsNotConfiguredError(GovContractException):
    """Raised when Stripe keys are missing."""

    def __init__(self):
        super().__init__(
            message="Payment processing is not configured",
            code="PAYMENTS_NOT_CONFIGURED",
            status_code=503,
            suggestion="Set STRIPE_SECRET_KEY and STRIPE_WEBHOOK_SECRET",
        )


class InvalidWebhookError(GovContractException):
    """Raised when a Stripe webhook is unsigned or fails verification."""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Invalid webhook: {reason}",
            code="INVALID_WEBHOOK",
            status_code=400,
        )


class PaymentProviderError(GovContractException):
    """Raised when a Stripe API call fails."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            message=f"Payment provider error during {operation}",
            code="PAYMENT_PROVIDER_ERROR",
            status_code=502,
            suggestion="Try again later or contact support if the issue persists",
            details={"operation": operation, "error": error}
        )


# =============================================================================
# Upload Exceptions
# =============================================================================

class FileTooLargeError(GovContractException):
    """Raised when uploaded file exceeds size limit."""

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

async def govcontract_exception_handler(
    request: Request,
    exc: GovContractException
) -> JSONResponse:
    """
    Convert GovContractException to JSON response.

    Body keys: detail, code, and suggestion/details when present.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def application_error_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Convert lower-layer ApplicationError subclasses (Supabase, AI,
    government APIs) that escape a router into a 502 response.
    """
    content = {
        "detail": getattr(exc, "message", str(exc)),
        "code": getattr(exc, "code", "UPSTREAM_ERROR"),
    }
    suggestion = getattr(exc, "suggestion", None)
    if suggestion:
        content["suggestion"] = suggestion
    return JSONResponse(status_code=502, content=content)
