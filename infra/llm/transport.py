import logging
from typing import Dict, Optional

import httpx

from app.settings import Settings
from domain.errors import TransportError

logger = logging.getLogger(__name__)

OPENAI_URL = "https://api.openai.com/v1/chat/completions"
OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"


def _is_retriable_status(status: int) -> bool:
    return status >= 500 or status in {408, 429}


async def _post(
    url: str,
    headers: Dict[str, str],
    payload: Dict,
    *,
    timeout: float,
    http_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict:
    """One HTTP round-trip. Retrying is the caller's concern."""
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=http_transport) as client:
            response = await client.post(url, headers=headers, json=payload)
        response.raise_for_status()
        return response.json()
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        raise TransportError(
            f"LLM API returned HTTP {status}",
            retryable=_is_retriable_status(status),
            status_code=status,
        ) from exc
    except httpx.TimeoutException as exc:
        raise TransportError(f"LLM API timed out after {timeout:g}s") from exc
    except httpx.RequestError as exc:
        raise TransportError(f"LLM API request failed: {exc}") from exc
    except ValueError as exc:
        raise TransportError("LLM API returned a non-JSON body", retryable=False) from exc


class HttpChatTransport:
    """Single-turn chat completion against OpenAI, falling back to OpenRouter."""

    def __init__(
        self,
        settings: Settings,
        *,
        timeout: Optional[float] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.timeout = timeout or settings.REMOTE_CALL_TIMEOUT_SECONDS
        self.http_transport = http_transport

    @property
    def provider(self) -> Optional[str]:
        if self.settings.OPENAI_API_KEY:
            return "openai"
        if self.settings.OPENROUTER_API_KEY:
            return "openrouter"
        return None

    def _request(self, prompt: str):
        messages = [{"role": "user", "content": prompt}]
        if self.provider == "openai":
            headers = {"Authorization": f"Bearer {self.settings.OPENAI_API_KEY}"}
            model = self.settings.OPENAI_MODEL
            url = OPENAI_URL
        elif self.provider == "openrouter":
            headers = {
                "Authorization": f"Bearer {self.settings.OPENROUTER_API_KEY}",
                "HTTP-Referer": "http://localhost",
                "X-Title": self.settings.APP_NAME,
            }
            model = self.settings.OPENROUTER_MODEL
            url = OPENROUTER_URL
        else:
            raise TransportError("No LLM provider configured", retryable=False)
        payload = {"model": model, "messages": messages,
                   "temperature": self.settings.LLM_TEMPERATURE}
        return url, headers, payload

    async def chat_complete(self, prompt: str) -> str:
        url, headers, payload = self._request(prompt)
        logger.debug("Calling LLM provider %s (%s)", self.provider, payload["model"])
        data = await _post(url, headers, payload, timeout=self.timeout,
                           http_transport=self.http_transport)
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as exc:
            raise TransportError("LLM API response had no message content", retryable=False) from exc
