"""
Error handling for Photo Booth Print Compositor.

Provides specific exception types for the fatal failure modes of the
render pipeline and the web surface around it, with enough context for
debugging and user feedback.

Non-fatal conditions (an invalid crop rectangle, an unreadable logo) are
not exceptions: they surface as ``None`` results and a warning log.
"""

from typing import Dict, List, Any


class PhotoBoothError(Exception):
    """Base exception for all Photo Booth errors."""

    http_status = 500

    def __init__(self, message: str, details: Dict[str, Any] = None, suggestions: List[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.suggestions = suggestions or []

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'details': self.details,
            'suggestions': self.suggestions
        }


class ValidationError(PhotoBoothError):
    """Raised when caller input validation fails."""
    http_status = 400


class ConfigurationError(PhotoBoothError):
    """Raised when configuration is invalid or missing."""
    pass


class ProcessingError(PhotoBoothError):
    """Raised when the processing pipeline fails."""
    pass


class RenderError(ProcessingError):
    """Raised when image rendering fails."""
    pass


# Specific error classes for common failure modes

class PhotoCountMismatchError(ValidationError):
    """Raised when the number of photos does not match the layout."""

    def __init__(self, layout: str, expected: int, received: int):
        super().__init__(
            f"{layout} layout requires exactly {expected} photos, but received {received}",
            details={
                'layout': layout,
                'expected': expected,
                'received': received
            },
            suggestions=[
                f"Upload exactly {expected} photo(s) for the {layout} layout",
                "Pick a different layout that matches the number of photos"
            ]
        )


class UnknownLayoutError(ValidationError):
    """Raised when a layout identifier is not one of the supported layouts."""

    def __init__(self, layout: str, supported: List[str]):
        super().__init__(
            f"Unknown layout: {layout}",
            details={
                'layout': layout,
                'supported': supported
            },
            suggestions=[f"Use one of: {', '.join(supported)}"]
        )


class LayoutNotAllowedError(ValidationError):
    """Raised when an event does not offer the requested layout."""

    def __init__(self, layout: str, event_slug: str, allowed: List[str]):
        super().__init__(
            f"Layout {layout} is not available for event {event_slug}",
            details={
                'layout': layout,
                'event': event_slug,
                'allowed': allowed
            },
            suggestions=[f"Choose one of the event's layouts: {', '.join(allowed)}"]
        )


class InvalidColorError(ValidationError):
    """Raised when a background color is not a hex RGB string."""

    def __init__(self, color: str):
        super().__init__(
            f"Invalid background color: {color}",
            details={'color': color},
            suggestions=["Use a hex RGB color such as #000000 or #FFB6C1"]
        )


class EventNotFoundError(ValidationError):
    """Raised when no event matches the requested slug."""
    http_status = 404

    def __init__(self, slug: str):
        super().__init__(
            f"Event not found: {slug}",
            details={'slug': slug},
            suggestions=[
                "Check the event link for typos",
                "Verify the event exists in config/events.yaml"
            ]
        )


class InvalidImageFormatError(ValidationError):
    """Raised when an uploaded file is not an accepted image type."""

    def __init__(self, filename: str, detected_type: str = None):
        super().__init__(
            f"Invalid image format: {filename}",
            details={
                'filename': filename,
                'detected_type': detected_type
            },
            suggestions=[
                "Use JPG or PNG photos",
                "Convert the file to a supported format"
            ]
        )


class FileTooLargeError(ValidationError):
    """Raised when an uploaded file exceeds the size limit."""
    http_status = 413

    def __init__(self, filename: str, size_mb: float, limit_mb: float):
        super().__init__(
            f"File too large: {filename} ({size_mb:.1f}MB exceeds {limit_mb:.1f}MB limit)",
            details={
                'filename': filename,
                'size_mb': size_mb,
                'limit_mb': limit_mb
            },
            suggestions=[
                f"Reduce file size to under {limit_mb:.1f}MB",
                "Upload a lower resolution photo"
            ]
        )


class DecodeFailureError(RenderError):
    """Raised when a photo or logo cannot be decoded as a raster image."""
    http_status = 400

    def __init__(self, source: str, reason: str = None):
        super().__init__(
            f"Could not decode image: {source}",
            details={
                'source': source,
                'reason': reason
            },
            suggestions=[
                "Use JPEG or PNG photos",
                "Convert HEIC photos to JPEG before uploading",
                "Ensure the file is not corrupted"
            ]
        )


class EncodeFailureError(RenderError):
    """Raised when the final canvas cannot be encoded."""

    def __init__(self, output_format: str, reason: str = None):
        super().__init__(
            f"Failed to encode canvas as {output_format}",
            details={
                'output_format': output_format,
                'reason': reason
            }
        )
