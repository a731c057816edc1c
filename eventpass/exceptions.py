"""
Exceptions raised by the pass artifact pipeline.

Each error carries a short machine-readable code so callers (the HTTP layer,
the pending queue, the command line) can react without parsing messages.
"""

from __future__ import annotations

from typing import Optional


class PassError(Exception):
    """Base exception for pass generation"""

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class CodeGenerationError(PassError):
    """Raised when no free unique code was found within the attempt budget"""

    def __init__(self, attempts: int):
        super().__init__(f"No unused code found after {attempts} attempts", "CODE_EXHAUSTED")
        self.attempts = attempts


class BarcodeEncodingError(PassError):
    """Raised when a payload cannot be encoded as a QR symbol"""

    def __init__(self, payload: str, reason: str):
        super().__init__(f"Cannot encode {payload!r}: {reason}", "BARCODE_ENCODE")
        self.payload = payload
        self.reason = reason


class TemplateError(PassError):
    """Raised for template constants that cannot produce a valid layout"""

    def __init__(self, reason: str):
        super().__init__(reason, "TEMPLATE_INVALID")


class RenderError(PassError):
    """Raised when the raster card cannot be composed"""

    def __init__(self, reason: str):
        super().__init__(reason, "RENDER_FAILED")


class PackagingError(PassError):
    """Raised when the pass image cannot be packaged as a document"""

    def __init__(self, reason: str):
        super().__init__(reason, "DOCUMENT_PACKAGE")
