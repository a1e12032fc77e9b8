import os
import re
import asyncio
import logging
from typing import Dict, List, Optional

import pdfplumber
from qdrant_client import QdrantClient

from app.settings import Settings, get_settings
from infra.rag.embeddings import embed_texts_openai
from infra.rag.qdrant_client import count_points, ensure_collection, get_client, upsert_texts_with_ids
from ingest.reference_docs import REFERENCE_DOCUMENTS

log = logging.getLogger("ingest_all")


def read_pdf_text(path: str, max_pages: int | None = None) -> str:
    parts: List[str] = []
    with pdfplumber.open(path) as pdf:
        pages = pdf.pages if max_pages is None else pdf.pages[:max_pages]
        for p in pages:
            parts.append(p.extract_text() or "")
    text = "\n".join(parts)
    return re.sub(r"\s+\n", "\n", text)


def chunk_text(text: str, size=1000, overlap=150) -> List[str]:
    out, i = [], 0
    n = len(text)
    while i < n:
        piece = text[i:i+size].strip()
        if piece:
            out.append(piece)
        i += max(1, size - overlap)
    return out


def build_payloads(documents: List[Dict]) -> List[Dict]:
    payloads = []
    for doc in documents:
        for i, t in enumerate(chunk_text(doc["text"].strip(), size=1800, overlap=200)):
            payloads.append({
                "text": t,
                "category": doc["category"],
                "sub_type": doc.get("sub_type"),
                "source": doc["source"],
                "chunk_index": i,
            })
    return payloads


async def ingest_documents(client: QdrantClient, settings: Settings, documents: List[Dict]) -> int:
    collection = settings.QDRANT_COLLECTION
    payloads = build_payloads(documents)
    if not payloads:
        return 0
    vecs = await embed_texts_openai(
        [p["text"] for p in payloads],
        api_key=settings.OPENAI_API_KEY,
        model=settings.OPENAI_EMBEDDING_MODEL,
    )
    ensure_collection(client, collection, vector_size=len(vecs[0]))
    upsert_texts_with_ids(client, collection, vecs, payloads)
    log.info(f"Ingested {len(payloads)} chunks from {len(documents)} documents into {collection}")
    return len(payloads)


async def ingest_if_empty(client: QdrantClient, settings: Settings) -> int:
    existing = count_points(client, settings.QDRANT_COLLECTION)
    if existing:
        log.info(f"Reference documents already ingested ({existing} points)")
        return 0
    return await ingest_documents(client, settings, REFERENCE_DOCUMENTS)


def documents_from_pdfs(jd: Optional[str], brief: Optional[str],
                        cv_rubric: Optional[str], project_rubric: Optional[str]) -> List[Dict]:
    """Built-in corpus, with any entry replaced by the text of a supplied PDF."""
    overrides = {
        ("job_description", None): jd,
        ("case_study", None): brief,
        ("rubric", "cv_evaluation"): cv_rubric,
        ("rubric", "project_evaluation"): project_rubric,
    }
    docs = []
    for doc in REFERENCE_DOCUMENTS:
        path = overrides.get((doc["category"], doc["sub_type"]))
        if path is None:
            docs.append(doc)
            continue
        if not (os.path.isfile(path) and path.lower().endswith(".pdf")):
            raise FileNotFoundError(f"Missing/invalid PDF: {path}")
        docs.append({**doc, "source": os.path.basename(path), "text": read_pdf_text(path)})
    return docs


async def main(jd: Optional[str] = None, brief: Optional[str] = None,
               cv_rubric: Optional[str] = None, project_rubric: Optional[str] = None):
    settings = get_settings()
    docs = documents_from_pdfs(jd, brief, cv_rubric, project_rubric)
    await ingest_documents(get_client(settings), settings, docs)
    log.info(" Ingestion completed successfully.")


if __name__ == "__main__":
    import argparse
    from app.logging import configure_logging

    configure_logging()
    parser = argparse.ArgumentParser(
        description="Ingest the reference corpus (JD, case brief, rubrics) into Qdrant")
    parser.add_argument("--jd", help="Path to a Job Description PDF")
    parser.add_argument("--brief", help="Path to a Case Study Brief PDF")
    parser.add_argument("--cv-rubric", help="Path to a CV Scoring Rubric PDF")
    parser.add_argument("--project-rubric", help="Path to a Project Scoring Rubric PDF")
    args = parser.parse_args()
    asyncio.run(main(args.jd, args.brief, args.cv_rubric, args.project_rubric))
