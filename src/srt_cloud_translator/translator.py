"""Translation backends."""

from __future__ import annotations

import json
import re
import logging
from typing import List, Dict, Any, Protocol, Sequence

from openai import AsyncOpenAI

from .errors import BackendError
from .llm_client import call_llm_async
from .parser import single_line

logger = logging.getLogger(__name__)


class TranslationBackend(Protocol):
    """
    Anything that can translate an ordered list of strings.

    Implementations must return a list of the same length and order as
    `texts`, and must tolerate concurrent calls.
    """

    async def translate(
        self,
        texts: Sequence[str],
        source_language: str,
        target_language: str,
    ) -> List[str]:
        ...


def _build_translation_prompt(
    items: List[Dict[str, Any]],
    source_language: str,
    target_language: str,
) -> tuple[str, str]:
    """Build translation prompts."""

    system_prompt = f"""You are a professional subtitle translator. Translate subtitle lines from language "{source_language}" to language "{target_language}".

## Rules:
1. Output valid JSON: {{"translations": [{{"id": 0, "text": "..."}}, ...]}}
2. Keep the same number of items as input, one translation per id
3. Translate each line on its own; never merge or split lines
4. Keep translations concise for subtitles
5. Keep formatting tags such as <i> and </i> unchanged

## JSON Format Example:
{{"translations": [{{"id": 0, "text": "..."}}, {{"id": 1, "text": "..."}}]}}"""

    user_prompt = f"""## Translate:
{json.dumps(items, ensure_ascii=False)}

Output JSON only:"""

    return system_prompt, user_prompt


def _parse_translation_response(json_str: str, expected_count: int) -> Dict[int, str]:
    """Parse JSON response from translation API."""

    if not json_str:
        return {}

    translated_map: Dict[int, str] = {}

    try:
        # Strip markdown code fences
        clean = json_str.strip()
        clean = re.sub(r'^```(?:json)?\s*', '', clean)
        clean = re.sub(r'\s*```$', '', clean)

        data = json.loads(clean)

        translations = data.get("translations", []) if isinstance(data, dict) else []
        if not isinstance(translations, list):
            logger.warning("'translations' is not a list")
            return {}

        for item in translations:
            if not isinstance(item, dict):
                continue

            item_id = item.get("id")
            text = item.get("text")

            # bool is a subclass of int
            if isinstance(item_id, bool) or not isinstance(item_id, int):
                logger.debug(f"Invalid id: {item_id!r}")
                continue
            if not 0 <= item_id < expected_count:
                logger.debug(f"Id out of range: {item_id}")
                continue
            if not isinstance(text, str):
                logger.debug(f"Invalid text for id {item_id}: {text!r}")
                continue

            translated_map[item_id] = single_line(text.strip())

    except json.JSONDecodeError as e:
        logger.error(f"JSON parse failed: {e}")
        logger.debug(f"Raw response: {json_str[:200]}...")

    return translated_map


class LLMTranslationBackend:
    """Translates batches through an OpenAI-compatible chat completion API."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str,
        temperature: float = 0.3,
        max_retries: int = 3,
    ):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_retries = max_retries

    async def translate(
        self,
        texts: Sequence[str],
        source_language: str,
        target_language: str,
    ) -> List[str]:
        """
        Translate one batch of lines in a single request.

        Raises:
            BackendError: if the response is missing any of the lines
        """
        if not texts:
            return []

        items = [{"id": i, "text": text} for i, text in enumerate(texts)]
        system_prompt, user_prompt = _build_translation_prompt(
            items, source_language, target_language
        )

        json_str = await call_llm_async(
            self.client, self.model,
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt}
            ],
            temperature=self.temperature,
            max_retries=self.max_retries,
            json_mode=True
        )

        translated_map = _parse_translation_response(json_str, len(texts))

        missing = [i for i in range(len(texts)) if i not in translated_map]
        if missing:
            raise BackendError(
                f"Response is missing {len(missing)} of {len(texts)} lines "
                f"(first missing id: {missing[0]})"
            )

        return [translated_map[i] for i in range(len(texts))]
