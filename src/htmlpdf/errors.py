"""
Conversion error hierarchy.

All package-level exceptions inherit from HtmlPdfError, which provides:
- message: technical detail (for logs)
- user_message: safe string (for UI display)
"""


class HtmlPdfError(Exception):
    """Base exception for all htmlpdf errors."""

    def __init__(self, message: str, user_message: str):
        self.message = message
        self.user_message = user_message
        super().__init__(message)


class ConversionError(HtmlPdfError):
    """Serialising the assembled document failed; there is no partial output."""

    def __init__(self, message: str):
        super().__init__(
            message=f"Failed to generate PDF: {message}",
            user_message="Document generation failed.",
        )


class StorageError(HtmlPdfError):
    """The storage collaborator rejected an upload."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            user_message="Document upload failed.",
        )
