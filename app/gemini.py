from __future__ import annotations

import logging
import os
from typing import Any, Optional

from app.config import settings

log = logging.getLogger("app.gemini")


class GeminiCompleter:
    """
    Adapter for text generation. Uses the Gemini API via the official SDK.

    Instances are awaitable callables ``(model, text) -> text`` so the
    workflow never sees SDK types.
    """

    def __init__(self, api_key: Optional[str] = None, timeout: Optional[int] = None) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self._client: Any = None

    def _get_client(self) -> Any:
        if self._client is not None:
            return self._client
        # Lazily import so tests/dev do not require the dependency.
        try:
            from google import genai  # type: ignore
            from google.genai import types  # type: ignore
        except Exception as e:  # pragma: no cover
            raise RuntimeError("Gemini SDK not available. Install with: pip install google-genai") from e

        api_key = self.api_key or settings.gemini_api_key or os.getenv("GEMINI_API_KEY")
        if not api_key:
            raise RuntimeError("Missing GEMINI_API_KEY (or config gemini.api_key)")
        timeout_s = self.timeout or settings.gemini_timeout
        self._client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout_s) * 1000),
        )
        return self._client

    async def __call__(self, model: str, text: str) -> Optional[str]:
        client = self._get_client()
        # Log sanitized payload (no prompt text, no api_key)
        log.info("gemini_generate_call model=%s prompt_len=%s", model, len(text))
        resp = await client.aio.models.generate_content(model=model, contents=text)
        out = getattr(resp, "text", None)
        log.info("gemini_generate_done model=%s result_len=%s", model, len(out or ""))
        return out

