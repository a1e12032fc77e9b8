import asyncio
import logging
from typing import Optional

from qdrant_client import QdrantClient
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse

from domain.errors import TransportError
from domain.schemas import ContextResult
from infra.rag.embeddings import embed_texts_openai
from infra.rag.qdrant_client import search_top_k_filtered

logger = logging.getLogger(__name__)


class QdrantContextProvider:
    """Similarity search over the ingested reference corpus."""

    def __init__(
        self,
        client: QdrantClient,
        collection: str,
        *,
        api_key: Optional[str],
        embedding_model: str,
    ):
        self.client = client
        self.collection = collection
        self.api_key = api_key
        self.embedding_model = embedding_model

    async def retrieve_context(
        self,
        query: str,
        category: str,
        top_k: int,
        sub_type: Optional[str] = None,
    ) -> ContextResult:
        [qvec] = await embed_texts_openai(
            [query], api_key=self.api_key, model=self.embedding_model)
        try:
            hits = await asyncio.to_thread(
                search_top_k_filtered,
                self.client,
                self.collection,
                qvec,
                top_k,
                category,
                sub_type,
            )
        except (UnexpectedResponse, ResponseHandlingException) as exc:
            status = getattr(exc, "status_code", None)
            raise TransportError(
                f"vector search failed for category={category}: {exc}",
                retryable=status is None or status >= 500 or status == 429,
                status_code=status,
            ) from exc

        # one entry per (source, chunk_index)
        seen = set()
        ranked = []
        for h in sorted(hits, key=lambda x: x["score"], reverse=True):
            p = h["payload"]
            key = (p.get("source"), p.get("chunk_index"))
            if key in seen or not p.get("text"):
                continue
            seen.add(key)
            ranked.append((p["text"], h["score"]))

        logger.info("Retrieved %d %s documents for query: %r",
                    len(ranked), sub_type or category, query[:50])
        return ContextResult(
            documents=[t for t, _ in ranked],
            scores=[s for _, s in ranked],
        )
