"""HTTP client for the Gemini `generateContent` endpoint."""

from __future__ import annotations

import asyncio
import json
import logging
import ssl
import urllib.error
import urllib.request
from typing import Any, Dict, Optional, Sequence

from ..exceptions import GenerationTransportError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash-preview-05-20"


class GeminiClient:
    """
    Minimal HTTP generation backend.

    The blocking request runs in a worker thread so the event loop keeps
    serving capture events while a reply is generated. Extraction of the
    candidate text is left to the dispatch controller; this client only
    guarantees a decoded JSON object or a :class:`GenerationTransportError`.

    Usage:
        >>> client = GeminiClient("https://generativelanguage.googleapis.com", api_key="...")
        >>> payload = await client.generate([{"role": "user", "parts": [{"text": "Hello"}]}])
        >>> payload["candidates"][0]["content"]["parts"][0]["text"]
        'Hi there!'
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        timeout: float = 30.0,
        ssl_context: Optional[ssl.SSLContext] = None,
    ) -> None:
        self._endpoint = f"{base_url.rstrip('/')}/v1beta/models/{model}:generateContent"
        self._api_key = api_key
        self._timeout = timeout
        self._ssl_context = ssl_context

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def generate(self, contents: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
        """Send the whole conversation and return the decoded response body."""
        return await asyncio.to_thread(self._post, {"contents": list(contents)})

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        request = urllib.request.Request(
            self._endpoint,
            data=json.dumps(payload).encode("utf-8"),
            headers=self._headers(),
            method="POST",
        )

        logger.debug("Sending %d turns to %s", len(payload["contents"]), self._endpoint)
        try:
            with urllib.request.urlopen(request, timeout=self._timeout, context=self._ssl_context) as response:  # type: ignore[arg-type]
                body = response.read()
                content_type = response.headers.get("Content-Type", "")
        except urllib.error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore")
            raise GenerationTransportError(f"Generation request failed ({exc.code}): {detail}") from exc
        except urllib.error.URLError as exc:
            raise GenerationTransportError(f"Generation request could not reach the server: {exc.reason}") from exc
        except OSError as exc:
            raise GenerationTransportError(f"Generation request failed: {exc}") from exc
        logger.debug("Received response (%d bytes)", len(body))

        if "application/json" not in content_type:
            raise GenerationTransportError(f"Unexpected content type: {content_type}")

        try:
            decoded = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise GenerationTransportError("Generation response was not valid JSON") from exc

        return decoded

    def _headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self._api_key:
            headers["x-goog-api-key"] = self._api_key
        return headers
