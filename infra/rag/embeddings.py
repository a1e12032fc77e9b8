from typing import List, Optional
import httpx
from domain.errors import TransportError

STUB_DIMENSION = 8
OPENAI_EMBEDDINGS_URL = "https://api.openai.com/v1/embeddings"


async def embed_texts_openai(
    texts: List[str],
    *,
    api_key: Optional[str],
    model: str,
    timeout: float = 60,
    http_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[List[float]]:
    if not texts:
        return []
    if not api_key:
        return [[0.0]*STUB_DIMENSION for _ in texts]
    headers = {"Authorization": f"Bearer {api_key}"}
    payload = {"model": model, "input": texts}
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=http_transport) as client:
            r = await client.post(OPENAI_EMBEDDINGS_URL, headers=headers, json=payload)
            r.raise_for_status()
            data = r.json()
        return [item["embedding"] for item in data["data"]]
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        raise TransportError(
            f"embedding request failed with HTTP {status}",
            retryable=status >= 500 or status in {408, 429},
            status_code=status,
        ) from exc
    except httpx.RequestError as exc:
        raise TransportError(f"embedding request failed: {exc}") from exc
    except (ValueError, KeyError, TypeError) as exc:
        raise TransportError(f"embedding response was malformed: {exc!r}", retryable=False) from exc
