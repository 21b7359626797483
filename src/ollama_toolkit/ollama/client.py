"""Async Ollama transport.

This module provides the Transport protocol consumed by the conversation
loop and OllamaTransport, its implementation over ollama.AsyncClient.
A transport performs exactly one exchange per call and never retries;
retries, if any, belong to the underlying HTTP client.
"""

import logging
from typing import Any, Awaitable, Callable, Protocol, Sequence

import httpx
import ollama

from ollama_toolkit.config import ToolkitSettings
from ollama_toolkit.errors import TransportError
from ollama_toolkit.ollama.types import ChatRequest, ChatResponse, EmbedResponse

logger = logging.getLogger(__name__)

RequestHook = Callable[[httpx.Request], Awaitable[None]]
ResponseHook = Callable[[httpx.Response], Awaitable[None]]


class Transport(Protocol):
    """Anything that can exchange a chat request for a chat response."""

    async def exchange(self, request: ChatRequest) -> ChatResponse:
        """Send the request and return the model's response.

        Raises:
            TransportError: If the exchange fails
        """
        ...


async def _trace_request(request: httpx.Request) -> None:
    logger.debug(
        f"Sending Ollama request: {request.method} {request.url} "
        f"({request.headers.get('content-length', '?')} bytes)"
    )


async def _trace_response(response: httpx.Response) -> None:
    request = response.request
    logger.debug(
        f"Received Ollama response: {request.method} {request.url} "
        f"status={response.status_code}"
    )


class OllamaTransport:
    """Async transport for the Ollama chat and embed APIs.

    This transport wraps ollama.AsyncClient. Request hooks run in the order
    they were given (first in, first out) and response hooks in reverse
    order (last in, first out), so a hook pair registered first wraps all
    the others.

    Attributes:
        host: The Ollama server URL, or None to use OLLAMA_HOST / the default
        _client: The underlying ollama.AsyncClient instance
    """

    def __init__(
        self,
        host: str | None = None,
        *,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        request_hooks: Sequence[RequestHook] = (),
        response_hooks: Sequence[ResponseHook] = (),
        trace: bool = False,
    ) -> None:
        """Initialize the transport.

        Args:
            host: The Ollama server URL or address; None defers to the
                  ollama library, which honours OLLAMA_HOST
            headers: Extra HTTP headers, e.g. for authentication
            timeout: Request timeout in seconds; None waits indefinitely
            request_hooks: Async callables applied to each outgoing request
            response_hooks: Async callables applied to each response
            trace: Log every request and response at DEBUG level
        """
        request_pipeline = list(request_hooks)
        response_pipeline = list(response_hooks)
        if trace:
            request_pipeline.insert(0, _trace_request)
            response_pipeline.insert(0, _trace_response)

        self.host = host
        self.request_hooks = tuple(request_pipeline)
        self.response_hooks = tuple(response_pipeline)

        kwargs: dict[str, Any] = {}
        if headers:
            kwargs["headers"] = dict(headers)
        if timeout is not None:
            kwargs["timeout"] = timeout
        if request_pipeline or response_pipeline:
            kwargs["event_hooks"] = {
                "request": list(request_pipeline),
                "response": list(reversed(response_pipeline)),
            }
        self._client = ollama.AsyncClient(host=host, **kwargs)
        logger.info(f"OllamaTransport initialized with host: {host or 'default'}")

    @classmethod
    def from_settings(
        cls, settings: ToolkitSettings, **kwargs: Any
    ) -> "OllamaTransport":
        """Create a transport from settings.

        Args:
            settings: Host, timeout and tracing configuration
            **kwargs: Extra arguments, such as headers or hooks

        Returns:
            OllamaTransport: The configured transport
        """
        return cls(
            settings.ollama_host,
            timeout=settings.request_timeout,
            trace=settings.trace_requests,
            **kwargs,
        )

    async def exchange(self, request: ChatRequest) -> ChatResponse:
        """Exchange a chat request for a complete (non-streaming) response.

        Args:
            request: The chat request, including messages and tools

        Returns:
            ChatResponse: The model's response

        Raises:
            TransportError: If the Ollama API request fails
        """
        logger.debug(
            f"Exchanging chat request: model={request.model}, "
            f"messages={len(request.messages)}, tools={len(request.tools)}"
        )
        try:
            response = await self._client.chat(**request.to_ollama(), stream=False)
        except ollama.ResponseError as e:
            logger.error(f"Ollama chat request failed: {e}")
            raise TransportError(str(e.error), status_code=e.status_code) from e
        except (httpx.HTTPError, ConnectionError) as e:
            logger.error(f"Ollama chat request failed: {e}")
            raise TransportError(str(e)) from e

        return ChatResponse.from_ollama(response)

    async def embed(
        self,
        model: str,
        input: str | Sequence[str],
        *,
        truncate: bool | None = None,
        options: dict[str, Any] | None = None,
        keep_alive: str | float | None = None,
    ) -> EmbedResponse:
        """Return embedding vectors for the input.

        Args:
            model: The embedding model name
            input: A string or a list of strings to embed
            truncate: Whether Ollama should truncate inputs to fit the context
            options: Model parameter overrides
            keep_alive: How long the model should stay loaded

        Returns:
            EmbedResponse: One vector per input

        Raises:
            TransportError: If the Ollama API request fails
        """
        try:
            response = await self._client.embed(
                model=model,
                input=input,
                truncate=truncate,
                options=options,
                keep_alive=keep_alive,
            )
        except ollama.ResponseError as e:
            logger.error(f"Ollama embed request failed: {e}")
            raise TransportError(str(e.error), status_code=e.status_code) from e
        except (httpx.HTTPError, ConnectionError) as e:
            logger.error(f"Ollama embed request failed: {e}")
            raise TransportError(str(e)) from e

        return EmbedResponse.from_ollama(response)

    async def check_connection(self) -> bool:
        """Check if the Ollama server is reachable.

        Returns:
            bool: True if connection is successful, False otherwise
        """
        try:
            await self._client.list()
            logger.debug("Ollama connection check: successful")
            return True
        except Exception as e:
            logger.warning(f"Ollama connection check failed: {e}")
            return False

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        # ollama.AsyncClient keeps its httpx.AsyncClient in _client
        http_client = getattr(self._client, "_client", None)
        if isinstance(http_client, httpx.AsyncClient):
            await http_client.aclose()
        logger.debug("OllamaTransport closed")

    async def __aenter__(self) -> "OllamaTransport":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
