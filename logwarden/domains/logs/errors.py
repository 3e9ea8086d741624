"""Errors surfaced by the log normalization layer."""

from .models import FormatValidation


class FormatRejectedError(ValueError):
    """Raised when a file's sampled yield rate is below the acceptance threshold."""

    def __init__(self, validation: FormatValidation) -> None:
        super().__init__(validation.error or "Unrecognized log format")
        self.validation = validation
