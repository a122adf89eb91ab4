"""
Domain exceptions for the build manager.

Routes translate these into HTTPException responses; see
app.api.deps.raise_http().
"""


class BuildManagerError(Exception):
    """Base exception for all domain errors."""

    status_code = 500

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


# =============================================================================
# Input rejection
# =============================================================================

class InvalidUploadError(BuildManagerError):
    """Raised when an upload is missing or unusable before any processing."""

    status_code = 400

    def __init__(self, message: str, code: str = "INVALID_UPLOAD"):
        super().__init__(message, code=code)


class FileTooLargeError(InvalidUploadError):
    """Raised when an upload exceeds the configured size limit."""

    def __init__(self, max_mb: int):
        super().__init__(f"File too large. Maximum size is {max_mb}MB.", code="FILE_TOO_LARGE")
        self.max_mb = max_mb


class UnsupportedFileError(InvalidUploadError):
    """Raised when an upload's MIME type is not one the extractor handles."""

    def __init__(self, mime_type: str):
        super().__init__(
            f"Unsupported file type: {mime_type}. Supported: PDF, PNG, JPG, CSV, XLS, XLSX",
            code="UNSUPPORTED_FILE_TYPE",
        )
        self.mime_type = mime_type


# =============================================================================
# Upstream AI
# =============================================================================

class MissingApiKeyError(BuildManagerError):
    """Raised when document AI is needed but no API key is configured."""

    status_code = 500

    def __init__(self):
        super().__init__(
            "No API key configured. Go to Settings to add your Anthropic API key.",
            code="MISSING_API_KEY",
        )


class UpstreamAIError(BuildManagerError):
    """Raised when the document-AI provider call fails."""

    def __init__(self, message: str, code: str = "UPSTREAM_AI_ERROR", status_code: int = 500):
        super().__init__(message, code=code)
        self.status_code = status_code


# =============================================================================
# Storage
# =============================================================================

class NotFoundError(BuildManagerError):
    """Raised when a referenced record does not exist."""

    status_code = 404

    def __init__(self, entity_type: str, entity_id: str):
        super().__init__(f"{entity_type} '{entity_id}' not found", code="NOT_FOUND")
        self.entity_type = entity_type
        self.entity_id = entity_id


class VersionConflictError(BuildManagerError):
    """Raised when a save carries an expected version that is no longer current."""

    status_code = 409

    def __init__(self, entity_type: str, expected: int, actual: int):
        super().__init__(
            f"{entity_type} was modified by another request "
            f"(expected version {expected}, found {actual}). Reload and retry.",
            code="VERSION_CONFLICT",
        )
        self.entity_type = entity_type
        self.expected = expected
        self.actual = actual
