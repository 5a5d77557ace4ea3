"""
Mithaq Text-Completion Oracle Client
====================================
Thin async client for the language-model provider (Anthropic Messages API).

The core treats the oracle as an opaque text-in/text-out dependency:
    complete(prompt, model, max_tokens, temperature) -> Result[str]

Failure mapping (every failure leaves as a taxonomy error):
- timeout / connect / transport errors, 5xx  -> network_error
- 401 / 403                                  -> authentication_error
- 429                                        -> rate_limit_exceeded
- stop_reason "refusal"                      -> content_policy_violation
- unparseable or empty body                  -> invalid_response
- other 4xx                                  -> processing_error

Environment Variables:
- ANTHROPIC_API_KEY: API key (required for real calls)
- ORACLE_BASE_URL: API base URL (default https://api.anthropic.com/v1)
- ORACLE_MODEL / ORACLE_MAX_TOKENS / ORACLE_TEMPERATURE / ORACLE_TIMEOUT_SECONDS
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from mithaq.shared.result import AgentError, AgentException, ErrorKind, Result

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")
ORACLE_BASE_URL = os.getenv("ORACLE_BASE_URL", "https://api.anthropic.com/v1")
ORACLE_MODEL = os.getenv("ORACLE_MODEL", "claude-sonnet-4-20250514")
ORACLE_MAX_TOKENS = int(os.getenv("ORACLE_MAX_TOKENS", "1000"))
ORACLE_TEMPERATURE = float(os.getenv("ORACLE_TEMPERATURE", "0.7"))
ORACLE_TIMEOUT_SECONDS = float(os.getenv("ORACLE_TIMEOUT_SECONDS", "60"))
ANTHROPIC_VERSION = "2023-06-01"


class TextOracle(ABC):
    """Anything that can turn a prompt into text."""

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> Result[str]:
        pass

    async def aclose(self) -> None:
        return None


class OracleClient(TextOracle):
    """
    Anthropic Messages API client.

    One AsyncClient is kept for connection reuse; call aclose() on shutdown.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        timeout: float = ORACLE_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else ANTHROPIC_API_KEY
        self.base_url = (base_url or ORACLE_BASE_URL).rstrip("/")
        self.model = model or ORACLE_MODEL
        self.max_tokens = max_tokens or ORACLE_MAX_TOKENS
        self.temperature = ORACLE_TEMPERATURE if temperature is None else temperature
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        if not self.api_key:
            logger.warning("ANTHROPIC_API_KEY not configured - oracle calls will fail")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def _get_headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _handle_response(self, response: httpx.Response) -> str:
        """Map an HTTP response to completion text or raise AgentException."""
        status = response.status_code

        if status in (401, 403):
            raise AgentException(AgentError(ErrorKind.AUTHENTICATION_ERROR))
        if status == 429:
            raise AgentException(AgentError(ErrorKind.RATE_LIMIT_EXCEEDED))
        if status >= 500:
            raise AgentException(AgentError.network(f"oracle returned {status}"))
        if status >= 400:
            raise AgentException(AgentError.processing(f"oracle rejected request ({status})"))

        try:
            body: Dict[str, Any] = response.json()
        except (json.JSONDecodeError, ValueError):
            raise AgentException(AgentError.invalid_response("oracle body is not JSON"))

        if body.get("stop_reason") == "refusal":
            raise AgentException(AgentError(ErrorKind.CONTENT_POLICY_VIOLATION))

        blocks = body.get("content") or []
        text = "".join(
            block.get("text", "")
            for block in blocks
            if isinstance(block, dict) and block.get("type") == "text"
        )
        if not text.strip():
            raise AgentException(AgentError.invalid_response("oracle returned no text"))
        return text

    async def complete(
        self,
        prompt: str,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> Result[str]:
        if not self.is_configured:
            return Result.fail(AgentError(ErrorKind.AUTHENTICATION_ERROR))

        payload = {
            "model": model or self.model,
            "max_tokens": max_tokens or self.max_tokens,
            "temperature": self.temperature if temperature is None else temperature,
            "messages": [{"role": "user", "content": prompt}],
        }

        try:
            response = await self._get_client().post(
                "/messages",
                headers=self._get_headers(),
                json=payload,
            )
            return Result.ok(self._handle_response(response))
        except AgentException as e:
            logger.error(f"Oracle call failed: {e}")
            return Result.fail(e.error)
        except httpx.TimeoutException:
            logger.error(f"Oracle call timed out after {self.timeout}s")
            return Result.fail(AgentError.network("timeout"))
        except httpx.RequestError as e:
            logger.error(f"Oracle transport error: {type(e).__name__}: {e}")
            return Result.fail(AgentError.network(type(e).__name__))
