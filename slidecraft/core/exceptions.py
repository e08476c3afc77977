"""
SlideCraft Custom Exceptions

Custom exception classes for error handling throughout the SlideCraft system.
"""


class SlideCraftError(Exception):
    """Base exception for all SlideCraft errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# PRECONDITION ERRORS
# =============================================================================

class PreconditionError(SlideCraftError):
    """Raised before any work starts when the caller's input is unusable."""
    pass


class MissingReferenceError(PreconditionError):
    """Raised when a generation is requested without reference images."""

    def __init__(self, message: str = "Upload at least one reference image first"):
        super().__init__(message)


class EmptyTopicError(PreconditionError):
    """Raised when a storyboard is requested for a blank topic."""

    def __init__(self):
        super().__init__("Storyboard topic must not be empty")


class InvalidReferenceError(PreconditionError):
    """Raised when an uploaded reference cannot be decoded."""
    pass


# =============================================================================
# GENERATION ERRORS
# =============================================================================

class MissingKeyError(SlideCraftError):
    """Raised when the generation credential is absent or rejected upstream."""

    code = "missing_key"

    def __init__(self, message: str = "Gemini API key is missing or was rejected"):
        super().__init__(message)


class GenerationError(SlideCraftError):
    """Base exception for a failed generation call."""

    code = "transport"


class NoImageReturnedError(GenerationError):
    """Raised when the model answered without an image payload."""

    code = "no_image"

    def __init__(self, message: str = "No image data returned from API", details: dict = None):
        super().__init__(message, details)


class GenerationTransportError(GenerationError):
    """Raised for HTTP and network failures talking to the model."""

    def __init__(self, message: str, status_code: int = None):
        details = {"status_code": status_code} if status_code is not None else None
        super().__init__(message, details)
        self.status_code = status_code


# =============================================================================
# OUTLINE ERRORS
# =============================================================================

class OutlineError(SlideCraftError):
    """Base exception for storyboard outline failures."""
    pass


class OutlineParseError(OutlineError):
    """Raised when the outline response is not a JSON array."""

    def __init__(self, reason: str):
        super().__init__(f"Could not parse storyboard outline: {reason}")


class OutlineInvalidError(OutlineError):
    """Raised when normalization leaves too few usable slides."""

    def __init__(self, slide_count: int):
        super().__init__(
            f"Storyboard outline has {slide_count} usable slides",
            {"slide_count": slide_count}
        )


# =============================================================================
# CONCURRENCY ERRORS
# =============================================================================

class SceneBusyError(SlideCraftError):
    """Raised when a scene already has a generation in flight."""

    def __init__(self, index: int):
        super().__init__(f"Scene {index} is already generating", {"index": index})
        self.index = index


class BatchInProgressError(SlideCraftError):
    """Raised when a second batch is started on the same scene list."""

    def __init__(self):
        super().__init__("A batch is already running for these scenes")


# =============================================================================
# USAGE ERRORS
# =============================================================================

class CreditLimitError(SlideCraftError):
    """Raised when a generation would exceed the user's credits."""

    code = "credit_limit"

    def __init__(self, requested: int, remaining: int, limit: int):
        message = (
            f"Generation limit reached: {requested} requested, "
            f"{remaining} of {limit} credits remaining"
        )
        super().__init__(message, {
            "requested": requested,
            "remaining": remaining,
            "limit": limit
        })
        self.requested = requested
        self.remaining = remaining
        self.limit = limit


# =============================================================================
# SESSION ERRORS
# =============================================================================

class SessionNotFoundError(SlideCraftError):
    """Raised when a generation session does not exist for the caller."""

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: '{session_id}'", {"session_id": session_id})
