"""
Exception hierarchy for pagestamp.

Element-scoped and page-scoped errors are recoverable and normally absorbed
by the engine; document-scoped errors are raised to the caller.
"""

from __future__ import annotations
from typing import Optional, Dict, Any, List


class PageStampError(Exception):
    """Base exception for all pagestamp errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False,
        suggestion: Optional[str] = None
    ):
        """
        Initialize error.

        Args:
            message: Human-readable error message
            details: Additional error details
            recoverable: Whether error can be recovered from
            suggestion: Suggested fix or workaround
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable
        self.suggestion = suggestion

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
            "suggestion": self.suggestion
        }

    def __str__(self) -> str:
        """String representation with suggestion if available."""
        result = self.message
        if self.suggestion:
            result += f"\nSuggestion: {self.suggestion}"
        return result


class InvalidTemplateStructure(PageStampError):
    """Raised when a template does not use the unified ``elements`` mapping."""

    def __init__(self, message: str, found_keys: Optional[List[str]] = None):
        details = {"found_keys": found_keys or []}
        suggestion = (
            'Templates must look like {"elements": {"text": [...], "logo": [...]}, '
            '"globalSettings": {...}}. Convert legacy textElements/logoElements '
            "templates before rendering them."
        )
        super().__init__(message, details, recoverable=False, suggestion=suggestion)
        self.found_keys = found_keys or []


class InvalidCanvasDimensions(PageStampError):
    """Raised when a page or canvas has a zero or negative size."""

    def __init__(self, width: float, height: float):
        message = f"Invalid canvas dimensions: {width} x {height}"
        details = {"width": width, "height": height}
        super().__init__(message, details, recoverable=False)
        self.width = width
        self.height = height


class UnsupportedScriptRendering(PageStampError):
    """Raised when Hebrew text is requested but no Hebrew font is loaded."""

    def __init__(self, content: str, script: str = "hebrew"):
        message = f"No font available for {script} text"
        details = {"script": script, "content_length": len(content or "")}
        suggestion = "Place NotoSansHebrew-Regular.ttf in the configured font directory"
        super().__init__(message, details, recoverable=True, suggestion=suggestion)
        self.content = content
        self.script = script


class ElementRenderFailure(PageStampError):
    """Raised when a single template element cannot be drawn."""

    def __init__(
        self,
        message: str,
        element_id: Optional[str] = None,
        element_type: Optional[str] = None,
        page: Optional[int] = None,
        original_error: Optional[Exception] = None
    ):
        details = {
            "element_id": element_id,
            "element_type": element_type,
            "page": page,
            "original_error": str(original_error) if original_error else None
        }
        super().__init__(message, details, recoverable=True)
        self.element_id = element_id
        self.element_type = element_type
        self.page = page
        self.original_error = original_error


class PageCopyFailure(PageStampError):
    """Raised when a source page cannot be copied or watermarked."""

    def __init__(self, page: int, original_error: Optional[Exception] = None):
        message = f"Failed to copy page {page}"
        if original_error:
            message += f": {original_error}"
        details = {
            "page": page,
            "original_error": str(original_error) if original_error else None
        }
        super().__init__(message, details, recoverable=True)
        self.page = page
        self.original_error = original_error


class DocumentProcessingFailure(PageStampError):
    """Raised when the source document itself cannot be loaded or rebuilt."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {"original_error": str(original_error) if original_error else None}
        suggestion = "Verify the document bytes are a valid, unencrypted PDF or SVG"
        super().__init__(message, details, recoverable=False, suggestion=suggestion)
        self.original_error = original_error


class ConfigurationError(PageStampError):
    """Raised when configuration is invalid."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        invalid_value: Optional[Any] = None,
        valid_values: Optional[List[Any]] = None
    ):
        """
        Initialize configuration error.

        Args:
            message: Error message
            config_key: Configuration key that's invalid
            invalid_value: Invalid value provided
            valid_values: List of valid values
        """
        details = {
            "config_key": config_key,
            "invalid_value": invalid_value,
            "valid_values": valid_values
        }

        suggestion = None
        if config_key and valid_values:
            suggestion = f"Valid values for {config_key}: {', '.join(map(str, valid_values))}"
        elif config_key:
            suggestion = f"Check configuration for '{config_key}'"

        super().__init__(message, details, recoverable=True, suggestion=suggestion)
        self.config_key = config_key
        self.invalid_value = invalid_value
        self.valid_values = valid_values
