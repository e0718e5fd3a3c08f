from __future__ import annotations


class ApiError(Exception):
    """Base class for errors rendered as JSON by the app error handlers."""

    status = 500
    code = "INTERNAL"
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, *, details: dict | None = None):
        self.message = (message or self.default_message).strip()
        self.details = details or None
        super().__init__(self.message)

    def to_payload(self) -> dict:
        payload = {
            "ok": False,
            "error": self.code,
            "message": self.message,
            "status": int(self.status),
        }
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationFailed(ApiError):
    status = 400
    code = "VALIDATION_FAILED"
    default_message = "Invalid request"


class InvalidParent(ValidationFailed):
    code = "INVALID_PARENT"
    default_message = "Parent category not found"


class HasChildren(ValidationFailed):
    code = "HAS_CHILDREN"
    default_message = "Cannot delete category that has subcategories. Delete or move children first."


class InvalidCategory(ValidationFailed):
    code = "INVALID_CATEGORY"
    default_message = "Category not found"


class InvalidAttribute(ValidationFailed):
    code = "INVALID_ATTRIBUTE"
    default_message = "Attribute filter not found"


class Unauthorized(ApiError):
    status = 401
    code = "UNAUTHORIZED"
    default_message = "Unauthorized"


class InvalidCredentials(Unauthorized):
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid email or password"


class Forbidden(ApiError):
    status = 403
    code = "FORBIDDEN"
    default_message = "Forbidden"


class NotFound(ApiError):
    status = 404
    code = "NOT_FOUND"
    default_message = "Not found"


class Conflict(ApiError):
    status = 409
    code = "CONFLICT"
    default_message = "Resource already exists"


class DuplicateSlug(Conflict):
    code = "DUPLICATE_SLUG"
    default_message = "Slug already in use"


class StorageUnavailable(ApiError):
    status = 503
    code = "STORAGE_UNAVAILABLE"
    default_message = "Image storage is not configured"
