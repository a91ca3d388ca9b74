"""LLM API client utilities."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Dict, Optional
from enum import Enum

from openai import (
    AsyncOpenAI,
    APIConnectionError,
    RateLimitError,
    AuthenticationError,
    BadRequestError,
    APIStatusError,
)

from .errors import BackendError

logger = logging.getLogger(__name__)


class APIErrorType(Enum):
    """Classification of API errors."""
    RATE_LIMIT = "rate_limit"      # 429, retryable
    CONNECTION = "connection"      # network, retryable
    AUTH = "auth"                  # 401
    BAD_REQUEST = "bad_request"    # 400
    SERVER = "server"              # 5xx, retryable
    UNKNOWN = "unknown"


def classify_error(error: Exception) -> tuple[APIErrorType, bool]:
    """
    Classify an API error and decide whether it can be retried.

    Returns:
        (error type, retryable)
    """
    if isinstance(error, RateLimitError):
        return APIErrorType.RATE_LIMIT, True
    elif isinstance(error, APIConnectionError):
        return APIErrorType.CONNECTION, True
    elif isinstance(error, AuthenticationError):
        return APIErrorType.AUTH, False
    elif isinstance(error, BadRequestError):
        return APIErrorType.BAD_REQUEST, False
    elif isinstance(error, APIStatusError):
        if getattr(error, "status_code", 0) >= 500:
            return APIErrorType.SERVER, True
        return APIErrorType.UNKNOWN, False
    else:
        return APIErrorType.UNKNOWN, False


def retry_delay(error_type: APIErrorType, attempt: int) -> int:
    """Backoff in seconds before retry number `attempt` (0-based)."""
    if error_type == APIErrorType.RATE_LIMIT:
        return min(2 ** (attempt + 2), 60)  # 4, 8, 16... max 60
    return 2 ** (attempt + 1)  # 2, 4, 8


async def call_llm_async(
    client: AsyncOpenAI,
    model: str,
    messages: List[Dict[str, str]],
    temperature: float = 0.3,
    max_retries: int = 3,
    json_mode: bool = False,
) -> str:
    """
    Make async call to LLM API with retry logic.

    Args:
        client: AsyncOpenAI client instance
        model: Model name to use
        messages: List of message dictionaries
        temperature: Sampling temperature
        max_retries: Maximum attempts for retryable errors
        json_mode: Whether to request JSON response format

    Returns:
        Response content as string

    Raises:
        BackendError: if every attempt failed or the error is not retryable
    """
    last_error: Optional[Exception] = None

    for attempt in range(max_retries):
        try:
            params: Dict = {
                "model": model,
                "messages": messages,
                "temperature": temperature,
            }
            if json_mode:
                params["response_format"] = {"type": "json_object"}

            response = await client.chat.completions.create(**params)
            content = response.choices[0].message.content
            return content.strip() if content else ""

        except Exception as e:
            last_error = e
            error_type, retryable = classify_error(e)

            if not retryable:
                logger.error(f"Non-retryable error ({error_type.value}): {e}")
                raise BackendError(f"{error_type.value}: {e}") from e

            if attempt + 1 >= max_retries:
                break

            delay = retry_delay(error_type, attempt)
            logger.warning(
                f"Retryable error ({error_type.value}): {e}. "
                f"Retry {attempt + 1}/{max_retries} in {delay}s..."
            )
            await asyncio.sleep(delay)

    logger.error(f"All {max_retries} attempts failed. Last error: {last_error}")
    raise BackendError(f"All {max_retries} attempts failed: {last_error}") from last_error


def create_client(
    api_key: str,
    base_url: str = "https://api.deepseek.com",
    timeout: float = 60.0
) -> AsyncOpenAI:
    """
    Create an AsyncOpenAI client.

    Args:
        api_key: API key for authentication
        base_url: API base URL
        timeout: Default timeout for requests

    Returns:
        Configured AsyncOpenAI client
    """
    return AsyncOpenAI(
        api_key=api_key,
        base_url=base_url,
        timeout=timeout,
    )
