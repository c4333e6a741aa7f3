import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion, ChatCompletionMessageParam

__all__ = ["completion_text", "safe_chat_completion"]


async def safe_chat_completion(
    client: AsyncOpenAI,
    *,
    model: str,
    messages: Iterable[dict[str, Any]],
    logger: logging.Logger | None = None,
    retry_attempts: int = 2,
    retry_backoff: float = 1.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    **kwargs,
) -> ChatCompletion:
    """Invoke the chat completion endpoint with exponential-backoff retries.

    Parameters
    ----------
    client:
        An initialised ``openai.AsyncOpenAI`` client.
    model:
        The model name to call (e.g. ``"gpt-4o-mini"``).
    messages:
        The messages for the chat completion endpoint.
    logger:
        Optional logger for diagnostics; defaults to the module logger.
    retry_attempts:
        Total attempts before giving up.
    retry_backoff:
        Base back-off in seconds, doubled after every failed attempt.
    sleep:
        Awaitable sleep used between attempts; injectable for tests.
    **kwargs:
        Forwarded to ``client.chat.completions.create``.

    Raises
    ------
    Exception
        The last exception raised by the SDK once all attempts fail.
    """
    if client is None:
        raise RuntimeError("OpenAI client is not initialised.")
    if not isinstance(client, AsyncOpenAI):
        raise TypeError("safe_chat_completion requires an AsyncOpenAI client.")

    logger = logger or logging.getLogger(__name__)
    typed_messages: Iterable[ChatCompletionMessageParam] = messages  # type: ignore[assignment]
    last_exc: Exception | None = None

    for attempt in range(1, retry_attempts + 1):
        try:
            start_ts = asyncio.get_running_loop().time()
            completion = await client.chat.completions.create(model=model, messages=typed_messages, **kwargs)
            logger.debug(
                "OpenAI completions.create succeeded | model=%s | latency=%.2fs",
                model,
                asyncio.get_running_loop().time() - start_ts,
            )
            return completion
        except Exception as exc:  # noqa: BLE001
            last_exc = exc
            logger.warning("OpenAI call failed (attempt %s/%s): %s", attempt, retry_attempts, exc)
            if attempt < retry_attempts:
                await sleep(retry_backoff * (2 ** (attempt - 1)))

    assert last_exc is not None
    raise last_exc


def completion_text(completion: ChatCompletion) -> str:
    """Content of the first choice, stripped; empty string when the model returned nothing."""
    if not completion.choices:
        return ""
    return (completion.choices[0].message.content or "").strip()
