"""Custom exceptions for SpecDiff engine."""


class SpecDiffError(Exception):
    """Base exception for SpecDiff errors."""
    pass


class ValidationError(SpecDiffError):
    """Raised when input validation fails."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class MissingArtifactError(SpecDiffError):
    """Raised when a full specification document is unavailable for a version."""
    def __init__(self, message: str, versions: list = None, sides: list = None):
        super().__init__(message)
        self.message = message
        self.versions = versions or []
        self.sides = sides or []


class InvalidSelectionError(SpecDiffError):
    """Raised when a version pair cannot be mapped onto available versions."""
    def __init__(self, requested: tuple, available: list):
        super().__init__(
            f"Cannot compare versions {requested[0]} -> {requested[1]}; "
            f"available: {available}"
        )
        self.requested = requested
        self.available = available


class MalformedQueryError(SpecDiffError):
    """Raised when a search query cannot be used for literal matching."""
    def __init__(self, query, reason: str):
        super().__init__(f"Unusable search query {query!r}: {reason}")
        self.query = query
        self.reason = reason


class PayloadSizeError(SpecDiffError):
    """Raised when document size exceeds limit."""
    def __init__(self, size_mb: float, limit_mb: float):
        super().__init__(f"Document size ({size_mb:.2f}MB) exceeds limit ({limit_mb}MB)")
        self.size_mb = size_mb
        self.limit_mb = limit_mb


class CircularRefError(SpecDiffError):
    """Raised when a circular reference is detected in a spec document."""
    def __init__(self, path: str):
        super().__init__(f"Circular reference detected at: {path}")
        self.path = path


class ExternalRefError(SpecDiffError):
    """Raised when an external $ref is encountered."""
    def __init__(self, ref: str):
        super().__init__(f"External $ref not allowed: {ref}")
        self.ref = ref


class BackendError(SpecDiffError):
    """Raised when the specs backend cannot be reached or answers with an error."""
    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
