"""HTTP transport for the Ollama ``/api/generate`` endpoint."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import httpx

from ..cancellation import CancellationToken, run_with_token
from ..exceptions import TransportError

logger = logging.getLogger(__name__)

GENERATE_PATH = "/api/generate"


class OllamaTransport:
    """Sends a single prompt to Ollama and returns the generated text.

    One non-streaming request per call; no retries and no state kept
    between calls. Every failure is raised as :class:`TransportError`.

    Parameters
    ----------
    host, port:
        Location of the Ollama server.
    timeout:
        Request timeout in seconds.
    client:
        Optional shared ``httpx.AsyncClient``. When omitted, a client is
        created per request and closed afterwards.
    """

    def __init__(
        self,
        host: str,
        port: int,
        *,
        timeout: float = 180.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self._client = client

    @property
    def url(self) -> str:
        host = self.host
        # IPv6 literals must be bracketed inside a URL
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        return f"http://{host}:{self.port}{GENERATE_PATH}"

    def build_payload(
        self, prompt: str, model: str, options: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"model": model, "prompt": prompt, "stream": False}
        if options:
            payload["options"] = dict(options)
        return payload

    async def send(
        self,
        prompt: str,
        *,
        model: str,
        options: Optional[Dict[str, Any]] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> str:
        """POST *prompt* and return the ``response`` field of the reply.

        Raises:
            TransportError: Endpoint unreachable, timed out, non-2xx status,
                or a body that is not ``{"response": <str>, ...}``.
            OperationCancelledError: *cancel_token* fired while waiting.
        """
        payload = self.build_payload(prompt, model, options)
        logger.debug(
            "Calling Ollama: %s model=%s prompt_chars=%d", self.url, model, len(prompt)
        )
        return await run_with_token(self._post(payload), cancel_token)

    async def _post(self, payload: Dict[str, Any]) -> str:
        try:
            if self._client is not None:
                response = await self._client.post(
                    self.url, json=payload, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.url, json=payload)
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Ollama request to {self.url} timed out after {self.timeout}s"
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"Could not reach Ollama at {self.url}: {str(e) or type(e).__name__}"
            ) from e
        except httpx.InvalidURL as e:
            raise TransportError(f"Invalid Ollama URL {self.url}: {e}") from e

        if not response.is_success:
            raise TransportError(
                f"Ollama API error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise TransportError(f"Ollama returned a non-JSON body: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("response"), str):
            raise TransportError("Ollama response body is missing the 'response' text.")
        return data["response"]
