"""Short image descriptions from a vision-capable model, with a local fallback."""

from __future__ import annotations

import json
import re
from typing import Any, Callable, Mapping

from google import genai
from google.genai import types

from ..core.http_client import HttpRequest, RequestExecutor
from ..platforms.microblog.media import mime_type_for
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)

CHAT_COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_OPENAI_MODEL = "gpt-4o"
DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
INSTRUCTION = "Write a short, descriptive alt text for the image. Keep it concise and relevant."

_EXTENSION = re.compile(r"\.[^/.]+$")
_SEPARATORS = re.compile(r"[-_]")


def fallback_description(filename: str) -> str:
    """Derive a readable description from the file name alone."""
    return _SEPARATORS.sub(" ", _EXTENSION.sub("", filename))


class BaseDescriptionGenerator:
    """Shared ``describe`` contract for the caption backends.

    :meth:`describe` only ever returns text. Network failures, error statuses,
    malformed payloads and empty answers all degrade to
    :func:`fallback_description`.
    """

    def __init__(self, *, model: str, max_tokens: int = 60) -> None:
        self._model = model
        self._max_tokens = max_tokens

    @property
    def model(self) -> str:
        return self._model

    async def describe(
        self,
        location: str,
        *,
        filename: str,
        enabled: bool,
        api_key: str | None,
    ) -> str:
        fallback = fallback_description(filename)
        if not enabled or not api_key:
            return fallback
        try:
            text = await self._request_description(location, filename=filename, api_key=api_key)
        except Exception as exc:
            LOGGER.warning(
                "Description service failed for %s, using fallback: %s",
                filename,
                exc,
                extra={"event": "description.fallback"},
            )
            return fallback
        text = (text or "").strip()
        if not text:
            LOGGER.warning("Description service returned no text for %s", filename)
            return fallback
        return text

    async def _request_description(self, location: str, *, filename: str, api_key: str) -> str:
        raise NotImplementedError


class DescriptionGenerator(BaseDescriptionGenerator):
    """Captions hosted images through an OpenAI-compatible chat endpoint."""

    def __init__(
        self,
        executor: RequestExecutor,
        *,
        endpoint: str = CHAT_COMPLETIONS_URL,
        model: str = DEFAULT_OPENAI_MODEL,
        max_tokens: int = 60,
    ) -> None:
        super().__init__(model=model, max_tokens=max_tokens)
        self._executor = executor
        self._endpoint = endpoint

    async def _request_description(self, location: str, *, filename: str, api_key: str) -> str:
        payload = {
            "model": self._model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": INSTRUCTION},
                        {"type": "image_url", "image_url": {"url": location}},
                    ],
                }
            ],
            "max_tokens": self._max_tokens,
        }
        request = HttpRequest(
            url=self._endpoint,
            method="POST",
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            data=json.dumps(payload).encode("utf-8"),
        )
        LOGGER.info("Describing %s model=%s", filename, self._model)
        response = await self._executor.execute(request)
        LOGGER.debug("Description raw response: %s", response.text[:500])
        return self._extract_text(json.loads(response.text))

    def _extract_text(self, payload: Mapping[str, Any]) -> str:
        content = payload["choices"][0]["message"]["content"]
        if not isinstance(content, str):
            raise TypeError(f"Unexpected message content type: {type(content).__name__}")
        return content


class GeminiDescriptionGenerator(BaseDescriptionGenerator):
    """Captions hosted images with a Gemini model through google-genai."""

    def __init__(
        self,
        *,
        model: str = DEFAULT_GEMINI_MODEL,
        max_tokens: int = 60,
        client_factory: Callable[[str], genai.Client] | None = None,
    ) -> None:
        super().__init__(model=model, max_tokens=max_tokens)
        self._client_factory = client_factory or (lambda key: genai.Client(api_key=key))

    async def _request_description(self, location: str, *, filename: str, api_key: str) -> str:
        client = self._client_factory(api_key)
        LOGGER.info("Describing %s model=%s", filename, self._model)
        response = await client.aio.models.generate_content(
            model=self._model,
            contents=[
                types.Part.from_uri(file_uri=location, mime_type=mime_type_for(filename)),
                INSTRUCTION,
            ],
            config=types.GenerateContentConfig(max_output_tokens=self._max_tokens),
        )
        return response.text or ""


def build_description_generator(
    executor: RequestExecutor,
    *,
    provider: str = "openai",
    model: str | None = None,
    endpoint: str | None = None,
    max_tokens: int = 60,
) -> BaseDescriptionGenerator:
    if provider == "gemini":
        return GeminiDescriptionGenerator(
            model=model or DEFAULT_GEMINI_MODEL,
            max_tokens=max_tokens,
        )
    if provider != "openai":
        raise ValueError(f"Unsupported description provider: {provider}")
    return DescriptionGenerator(
        executor,
        endpoint=endpoint or CHAT_COMPLETIONS_URL,
        model=model or DEFAULT_OPENAI_MODEL,
        max_tokens=max_tokens,
    )
