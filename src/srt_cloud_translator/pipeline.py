"""Storage-triggered translation pipeline."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Optional

from .config import TranslatorConfig
from .coordinator import translate_document
from .errors import ConfigurationError, EmptyContentError
from .llm_client import create_client
from .models import StorageEvent
from .staging import delete_file, write_temp_file
from .storage import FirebaseStorage, ObjectStorage
from .translator import LLMTranslationBackend, TranslationBackend

logger = logging.getLogger(__name__)


@dataclass
class PipelineDependencies:
    """Long-lived collaborators, built once per process."""
    config: TranslatorConfig
    storage: ObjectStorage
    backend: TranslationBackend


def output_filename(name: str, source_language: str, target_language: str) -> str:
    """
    Derive the translated object's name from the source object's name.

    The directory part is dropped and the first `-{source}` token is
    replaced by `-{target}`: 'subs/sample-en.txt' -> 'sample-nl.txt'.
    """
    base = PurePosixPath(name).name
    return base.replace(f"-{source_language}", f"-{target_language}", 1)


def decode_content(data: Optional[bytes]) -> str:
    """Decode downloaded bytes, rejecting empty or undecodable content."""
    if not data:
        raise EmptyContentError("Could not read data")
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise EmptyContentError(f"Could not read data: {e}") from e
    if not text:
        raise EmptyContentError("Could not read data")
    return text


async def process_file(event: StorageEvent, deps: PipelineDependencies) -> str:
    """
    Download, translate and upload a single object.

    Steps run in order and the first failure stops the rest, except that
    the local temporary file is always deleted once it has been written.

    Returns:
        Name of the uploaded object in the target bucket
    """
    config = deps.config
    if not config.target_bucket:
        raise ConfigurationError("Target bucket is not configured")

    destination = output_filename(
        event.name, config.source_language, config.target_language
    )
    logger.info(f"Processing new text file: {event.name} ({event.content_type})")

    data = await deps.storage.download(event.bucket, event.name)
    content = decode_content(data)

    translated = await translate_document(
        content,
        config.source_language,
        config.target_language,
        deps.backend,
        config.max_batch_size,
        show_progress=config.show_progress,
    )

    logger.info(f"Writing translated file locally to {Path(config.temp_dir) / destination}.")
    local_path = await write_temp_file(config.temp_dir, destination, translated)

    try:
        logger.info(f"Uploading local file {destination} to bucket {config.target_bucket}")
        await deps.storage.upload(local_path, config.target_bucket, destination)
        logger.info(f"{local_path} uploaded to {config.target_bucket}")
    except Exception as e:
        logger.error(f"Error uploading translated file to bucket: {e}")
        # The upload error is the one reported; a cleanup failure is only logged
        try:
            logger.info(f"Deleting local file {local_path}")
            await delete_file(local_path)
        except OSError as cleanup_error:
            logger.error(f"Could not delete local file {local_path}: {cleanup_error}")
        raise

    logger.info(f"Deleting local file {local_path}")
    await delete_file(local_path)

    return destination


async def handle_event(
    event_data: Dict[str, Any],
    deps: PipelineDependencies,
) -> Optional[str]:
    """
    Entry point for one storage notification.

    Deletion and non-file events are logged and skipped.

    Returns:
        Uploaded object name, or None for skipped events
    """
    event = StorageEvent.from_dict(event_data)

    if event.is_deletion:
        logger.info("This is a deletion event.")
        return None
    if not event.is_file:
        logger.info("This is a deploy event.")
        return None

    try:
        destination = await process_file(event, deps)
    except Exception as e:
        logger.error(f"Failed to download, translate or upload file. {e}")
        raise

    logger.info("Finished.")
    return destination


def build_dependencies(config: TranslatorConfig) -> PipelineDependencies:
    """Construct the production storage and translation clients."""
    client = create_client(config.api_key, config.base_url, config.request_timeout)
    backend = LLMTranslationBackend(
        client, config.model_name, max_retries=config.max_retries
    )
    return PipelineDependencies(config=config, storage=FirebaseStorage(), backend=backend)


_dependencies: Optional[PipelineDependencies] = None
_loop: Optional[asyncio.AbstractEventLoop] = None


def _event_loop() -> asyncio.AbstractEventLoop:
    """Return the process-wide event loop, creating it on first use."""
    global _loop

    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop


def translate_srt_files(data: Dict[str, Any], context: Any = None) -> Optional[str]:
    """
    Background function entry point for storage triggers.

    Clients are built from the environment on the first invocation and
    reused for later ones. The AsyncOpenAI connection pool is bound to the
    loop it first ran on, so every invocation runs on the same loop.
    """
    global _dependencies

    loop = _event_loop()
    if _dependencies is None:
        config = TranslatorConfig.from_env()
        error = config.validate()
        if error:
            raise ConfigurationError(error)
        _dependencies = build_dependencies(config)

    return loop.run_until_complete(handle_event(data, _dependencies))
