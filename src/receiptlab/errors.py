"""Exceptions raised while generating a receipt image."""

from __future__ import annotations


class ReceiptGenerationError(RuntimeError):
    """Base class for every failure surfaced by the generation path."""

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.detail = detail


class ConfigurationError(ReceiptGenerationError):
    """A provider credential or setting is missing."""


class EmptyResponseError(ReceiptGenerationError):
    """The provider answered with no candidates or results."""


class NoImageError(ReceiptGenerationError):
    """The provider answered, but without an image payload."""

    def __init__(self, message: str, text: str = "") -> None:
        super().__init__(message, detail=text or None)
        self.text = text


class ProviderTransportError(ReceiptGenerationError):
    """Network failure or non-success status from the provider."""
