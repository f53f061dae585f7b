"""Remote completions adapter streaming Server-Sent Events over httpx."""

import json
import logging
import os
from typing import Any

import httpx

from relaychat.config.schema import RemoteModelConfig
from relaychat.errors import BackendError, ConfigurationError, StreamParseError
from relaychat.llm.client import Message, PartialCallback

logger = logging.getLogger(__name__)

SSE_DATA_PREFIX = "data: "
SSE_DONE = "[DONE]"


def parse_delta(payload: str) -> str:
    """Decode one SSE ``data:`` payload into its delta text.

    Raises:
        StreamParseError: If the payload is not a completion chunk
    """
    try:
        data = json.loads(payload)
        choices = data.get("choices") or []
        if not choices:
            return ""
        content = choices[0].get("delta", {}).get("content")
    except (json.JSONDecodeError, AttributeError, TypeError) as e:
        raise StreamParseError(f"Malformed stream frame: {payload[:80]!r}") from e

    if content is None:
        return ""
    if not isinstance(content, str):
        raise StreamParseError(f"Non-text delta in stream frame: {payload[:80]!r}")
    return content


def _error_message(response: httpx.Response) -> str:
    """Pull the server-provided error message out of a failed response."""
    try:
        data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return "Failed to generate AI response"

    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    return "Failed to generate AI response"


class RemoteBackend:
    """Streams replies from a remote chat completions endpoint."""

    def __init__(
        self,
        config: RemoteModelConfig,
        system_prompt: str = "You are a helpful AI assistant.",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            config: Remote model configuration
            system_prompt: Preamble prepended to every request
            client: Shared HTTP client (one is created if None)
        """
        self.config = config
        self.system_prompt = system_prompt
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(config.timeout))

    def _api_key(self) -> str:
        api_key = os.environ.get(self.config.api_key_env, "")
        if not api_key:
            raise ConfigurationError(
                f"Remote API key not found. Set the {self.config.api_key_env} environment variable."
            )
        return api_key

    def _build_payload(self, history: list[Message]) -> dict[str, Any]:
        messages = [{"role": "system", "content": self.system_prompt}]
        messages.extend(msg.to_dict() for msg in history)
        return {
            "model": self.config.model,
            "messages": messages,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
            "stream": True,
        }

    async def complete(self, history: list[Message], on_partial: PartialCallback) -> str:
        """Stream a reply from the remote endpoint.

        Args:
            history: Ordered user/assistant turns, newest last
            on_partial: Called with the accumulated reply after every frame

        Returns:
            The complete reply text

        Raises:
            ConfigurationError: If the API key is missing
            BackendError: On network failure or a non-success response
        """
        headers = {
            "Authorization": f"Bearer {self._api_key()}",
            "Content-Type": "application/json",
        }
        payload = self._build_payload(history)
        streamed = ""

        try:
            async with self._client.stream(
                "POST", self.config.api_url, json=payload, headers=headers
            ) as response:
                if not response.is_success:
                    await response.aread()
                    raise BackendError(_error_message(response), status_code=response.status_code)

                async for line in response.aiter_lines():
                    if not line.startswith(SSE_DATA_PREFIX):
                        continue
                    data = line[len(SSE_DATA_PREFIX) :].strip()
                    if data == SSE_DONE:
                        break

                    try:
                        delta = parse_delta(data)
                    except StreamParseError as e:
                        logger.warning("%s", e)
                        delta = ""

                    streamed += delta
                    on_partial(streamed)
        except httpx.HTTPError as e:
            raise BackendError(f"Remote request failed: {e}") from e

        return streamed

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "RemoteBackend":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
