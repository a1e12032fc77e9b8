from typing import Optional
from qdrant_client import QdrantClient
from qdrant_client.models import Distance, VectorParams, PointStruct, Filter, FieldCondition, MatchValue
from app.settings import Settings
import hashlib
import uuid

PAYLOAD_INDEXES = [
    ("category", "keyword"),
    ("sub_type", "keyword"),
    ("source", "keyword"),
    ("chunk_index", "integer"),
]


def get_client(settings: Settings) -> QdrantClient:
    return QdrantClient(url=settings.QDRANT_URL, api_key=settings.QDRANT_API_KEY or None)


def _ensure_payload_indexes(client: QdrantClient, collection: str):
    existing = client.get_collection(collection).payload_schema or {}
    for field, schema in PAYLOAD_INDEXES:
        if field in existing:
            continue
        client.create_payload_index(
            collection_name=collection,
            field_name=field,
            field_schema=schema
        )


def ensure_collection(client: QdrantClient, name: str, vector_size: int = 1536):
    names = {x.name for x in client.get_collections().collections}
    if name not in names:
        client.create_collection(collection_name=name, vectors_config=VectorParams(
            size=vector_size, distance=Distance.COSINE))
    _ensure_payload_indexes(client, name)


def count_points(client: QdrantClient, collection: str) -> int:
    names = {x.name for x in client.get_collections().collections}
    if collection not in names:
        return 0
    return client.count(collection_name=collection, exact=True).count


def _stable_id(category: str, sub_type: str, source: str, chunk_index: int, text: str) -> str:
    raw = f"{category}|{sub_type}|{source}|{chunk_index}|{text}"
    return str(uuid.UUID(hashlib.md5(raw.encode("utf-8")).hexdigest()))


def upsert_texts_with_ids(client: QdrantClient, collection: str, vectors: list[list[float]], payloads: list[dict]):
    points = [
        PointStruct(
            id=_stable_id(
                p["category"], p.get("sub_type") or "", p.get("source", ""),
                p.get("chunk_index", -1), p["text"]
            ),
            vector=v,
            payload=p
        )
        for v, p in zip(vectors, payloads)
    ]
    client.upsert(collection_name=collection, points=points)


def search_top_k_filtered(
    client: QdrantClient,
    collection: str,
    query_vector: list[float],
    k: int,
    category: str,
    sub_type: Optional[str] = None,
):
    must = [FieldCondition(key="category", match=MatchValue(value=category))]
    if sub_type:
        must.append(FieldCondition(key="sub_type", match=MatchValue(value=sub_type)))

    hits = client.query_points(
        collection_name=collection,
        query=query_vector,
        limit=k,
        query_filter=Filter(must=must),
        with_payload=True,
    ).points
    return [{"payload": h.payload or {}, "score": float(h.score)} for h in hits]
