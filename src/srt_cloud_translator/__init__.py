"""
SRT Cloud Translator - storage-triggered subtitle translation.

Features:
- Line-level SRT parsing that keeps index, timestamp and blank lines intact
- Bounded batches translated concurrently with asyncio
- LLM translation backend through any OpenAI-compatible API
- Cloud Storage download/upload through firebase_admin
"""

__version__ = "1.0.0"

from .models import LineRole, Line, ParsedDocument, RequestItem, Batch, StorageEvent
from .parser import classify_line, parse_document, reconstitute
from .coordinator import plan_batches, translate_all, merge_into_positions, translate_document
from .translator import TranslationBackend, LLMTranslationBackend
from .storage import ObjectStorage, FirebaseStorage
from .pipeline import (
    PipelineDependencies,
    build_dependencies,
    handle_event,
    output_filename,
    translate_srt_files,
)
from .config import TranslatorConfig
from .errors import (
    TranslatorError,
    ConfigurationError,
    EmptyContentError,
    BackendError,
    BatchSizeMismatchError,
    TranslationFailedError,
)

__all__ = [
    # Models
    "LineRole",
    "Line",
    "ParsedDocument",
    "RequestItem",
    "Batch",
    "StorageEvent",
    "TranslatorConfig",
    # Parsing
    "classify_line",
    "parse_document",
    "reconstitute",
    # Batching
    "plan_batches",
    "translate_all",
    "merge_into_positions",
    "translate_document",
    # Collaborators
    "TranslationBackend",
    "LLMTranslationBackend",
    "ObjectStorage",
    "FirebaseStorage",
    # Pipeline
    "PipelineDependencies",
    "build_dependencies",
    "handle_event",
    "output_filename",
    "translate_srt_files",
    # Errors
    "TranslatorError",
    "ConfigurationError",
    "EmptyContentError",
    "BackendError",
    "BatchSizeMismatchError",
    "TranslationFailedError",
]
