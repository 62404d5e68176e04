"""Exceptions raised by the contract PDF pipeline"""


class PdfGenerationError(Exception):
    """Base class for every PDF pipeline failure"""

    user_message = "Failed to generate PDF. Please try again."


class PdfPreconditionError(PdfGenerationError):
    """Raised before any expensive work when the inputs cannot produce a document"""


class PreviewNotFoundError(PdfPreconditionError):
    user_message = "Contract preview not found"


class MissingContractDataError(PdfPreconditionError):
    user_message = "No contract data to export"


class EmptyPreviewError(PdfPreconditionError):
    user_message = "Contract preview is empty"


class PdfRenderError(PdfGenerationError):
    """Raised when a resource step still fails after its automatic degradation"""
