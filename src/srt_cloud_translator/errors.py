"""Exceptions raised while translating subtitle files."""

from __future__ import annotations


class TranslatorError(Exception):
    """Base class for all translator errors."""


class ConfigurationError(TranslatorError):
    """Configuration is missing or invalid."""


class EmptyContentError(TranslatorError):
    """Downloaded object contained no usable text."""


class BackendError(TranslatorError):
    """The translation backend failed or returned unusable output."""


class BatchSizeMismatchError(TranslatorError):
    """Number of translated items differs from the number requested."""

    def __init__(self, expected: int, actual: int, batch_index: int | None = None):
        self.expected = expected
        self.actual = actual
        self.batch_index = batch_index
        where = f"batch {batch_index}" if batch_index is not None else "translation result"
        super().__init__(f"{where}: expected {expected} items, got {actual}")


class TranslationFailedError(TranslatorError):
    """At least one translation batch failed; no output was produced."""
