# src/core/errors.py - v1
"""Error taxonomy for the review pipeline.

Every error raised by casereview derives from ReviewError. The ``systemic``
class attribute separates faults that would repeat identically for every
remaining document (missing credential, missing prompt) from faults scoped to
a single document or model call.
"""

from __future__ import annotations


class ReviewError(Exception):
    """Base class for all casereview errors."""

    systemic: bool = False


class ConfigurationError(ReviewError):
    """Missing credential or internally inconsistent configuration."""

    systemic = True


class PromptLoadError(ReviewError):
    """A prompt resource could not be read."""

    systemic = True

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load prompt from {path}: {reason}")


class ResourceReadError(ReviewError):
    """An input document could not be read."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Failed to read file {name}: {reason}")


class UnsupportedDocumentError(ResourceReadError):
    """Document bytes could not be turned into text."""


class UploadValidationError(ReviewError):
    """Upload rejected because some files have a non-conforming extension."""

    def __init__(self, rejected: list[str], allowed: list[str]) -> None:
        self.rejected = rejected
        self.allowed = allowed
        super().__init__(
            f"Unsupported file type for {', '.join(rejected)}. "
            f"Allowed extensions: {', '.join(allowed)}"
        )


class LLMCallError(ReviewError):
    """A single model invocation failed."""


class TransportError(LLMCallError):
    """Network or provider API fault. The original exception is the __cause__."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Model API call failed: {message}")


class EmptyResponseError(LLMCallError):
    """The provider returned no content."""

    def __init__(self, model: str) -> None:
        self.model = model
        super().__init__(f"Empty response from model {model}")


class MissingUsageError(LLMCallError):
    """The provider response carried no usage statistics."""

    def __init__(self, model: str) -> None:
        self.model = model
        super().__init__(f"No token usage statistics returned by model {model}")


class BatchTimeoutError(ReviewError):
    """The batch exceeded its wall-clock budget."""

    def __init__(self, budget_s: float) -> None:
        self.budget_s = budget_s
        super().__init__(f"Batch processing timed out after {budget_s:g}s")


def is_systemic(error: BaseException) -> bool:
    """Return True if the fault would repeat for every remaining document."""
    return isinstance(error, ReviewError) and error.systemic
