from __future__ import annotations


class ConversionError(RuntimeError):
    """Base class for failures surfaced to the caller as ``{"error": message}``."""

    status_code = 500

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(ConversionError):
    status_code = 400


class PayloadTooLargeError(ConversionError):
    status_code = 413


class ExtractionError(ConversionError):
    status_code = 500


class RemoteServiceError(ConversionError):
    status_code = 500

    def __init__(self, message: str, *, upstream_status: int | None = None, upstream_message: str = ""):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.upstream_message = upstream_message or message


class ResponseFormatError(ConversionError):
    status_code = 500


class RenderError(ConversionError):
    status_code = 500
