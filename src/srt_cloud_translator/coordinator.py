"""Batch planning, concurrent dispatch and merging of translations."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Sequence

from tqdm import tqdm

from .errors import BatchSizeMismatchError, TranslationFailedError
from .models import Batch, RequestItem
from .parser import parse_document, reconstitute
from .translator import TranslationBackend

logger = logging.getLogger(__name__)


def plan_batches(request: Sequence[RequestItem], max_batch_size: int) -> List[Batch]:
    """
    Split the request into contiguous batches of at most `max_batch_size`.

    Only the final batch may be shorter. Boundaries depend on nothing but
    the request length and the batch size.
    """
    if max_batch_size < 1:
        raise ValueError(f"max_batch_size must be >= 1, got {max_batch_size}")

    return [
        Batch(batch_idx, tuple(request[start:start + max_batch_size]))
        for batch_idx, start in enumerate(range(0, len(request), max_batch_size))
    ]


async def _translate_batch(
    batch: Batch,
    source_language: str,
    target_language: str,
    backend: TranslationBackend,
    bar: tqdm,
) -> List[str]:
    translated = await backend.translate(batch.texts, source_language, target_language)
    if len(translated) != len(batch):
        raise BatchSizeMismatchError(len(batch), len(translated), batch.index)
    bar.update(1)
    return list(translated)


async def translate_all(
    batches: Sequence[Batch],
    source_language: str,
    target_language: str,
    backend: TranslationBackend,
    show_progress: bool = False,
) -> List[str]:
    """
    Translate all batches concurrently and concatenate the results.

    Every batch call is scheduled before any is awaited. Results are
    concatenated in batch order, not completion order. The first failure
    cancels the remaining calls and raises TranslationFailedError.

    Returns:
        Translated strings aligned 1:1 with the concatenated batch texts
    """
    if not batches:
        return []

    logger.info(f"Performing {len(batches)} translation requests")

    with tqdm(total=len(batches), desc="Translating", disable=not show_progress) as bar:
        tasks = [
            asyncio.ensure_future(
                _translate_batch(batch, source_language, target_language, backend, bar)
            )
            for batch in batches
        ]
        try:
            results = await asyncio.gather(*tasks)
        except Exception as e:
            for task in tasks:
                task.cancel()
            # Collect sibling outcomes so none are left unretrieved
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.error(f"Translation failed: {e}")
            raise TranslationFailedError(f"One or more translations failed ({e})") from e

    logger.info(f"Translations done. {len(results)} segments returned")

    translations: List[str] = []
    for segment in results:
        translations.extend(segment)
    return translations


def merge_into_positions(
    request: Sequence[RequestItem],
    result: Sequence[str],
) -> Dict[int, str]:
    """Map each request position to its translated text."""
    if len(request) != len(result):
        raise BatchSizeMismatchError(len(request), len(result))
    return {item.position: text for item, text in zip(request, result)}


async def translate_document(
    content: str,
    source_language: str,
    target_language: str,
    backend: TranslationBackend,
    max_batch_size: int,
    show_progress: bool = False,
) -> str:
    """
    Translate the text lines of an SRT document, keeping its structure.

    Index, timestamp and blank lines are copied verbatim; the output has
    exactly as many lines as the input.
    """
    document = parse_document(content)
    request = document.translation_request()

    logger.info(f"{len(request)} lines of text need translation")
    logger.info(f"Batch size: {max_batch_size}")

    batches = plan_batches(request, max_batch_size)
    result = await translate_all(
        batches, source_language, target_language, backend, show_progress
    )
    translations = merge_into_positions(request, result)

    return reconstitute(document, translations)
