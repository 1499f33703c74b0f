"""
gateway.py - Natural-language book search over Pinecone

The index stores one record per book chunk in the ``books`` namespace with an
integrated embedding model, so queries are sent as plain text and Pinecone
does the embedding and ranking. Results are passed through in Pinecone's
order; nothing is re-ranked here.

RECORD FIELDS:
    ID, document_title, author, summary, chunk_text
"""

import logging
from typing import Any, Dict, List, Optional

from pinecone import Pinecone

from ..shared.config import Settings
from ..shared.errors import ConfigurationError

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ["ID", "chunk_text", "document_title", "author", "summary"]
DEFAULT_LIMIT = 10


def _as_dict(value: Any) -> Dict[str, Any]:
    """SDK responses are OpenAPI models; plain dicts are accepted too."""
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return dict(value)


def _hit_id(hit: Dict[str, Any]) -> Optional[str]:
    fields = hit.get("fields") or {}
    return fields.get("ID") or hit.get("_id") or hit.get("id")


def _hit_score(hit: Dict[str, Any]) -> float:
    return hit.get("_score") or hit.get("score") or 0


class SearchGateway:
    """Semantic search and index status for the book catalog."""

    def __init__(self, index: Any, index_name: str, index_host: Optional[str] = None, namespace: str = "books"):
        self.index = index
        self.index_name = index_name
        self.index_host = index_host
        self.namespace = namespace

    @classmethod
    def from_settings(cls, settings: Settings, client_factory=Pinecone) -> "SearchGateway":
        if not settings.pinecone_api_key:
            raise ConfigurationError("PINECONE_API_KEY environment variable is required")
        client = client_factory(api_key=settings.pinecone_api_key)
        if settings.pinecone_index_host:
            index = client.Index(name=settings.pinecone_index_name, host=settings.pinecone_index_host)
        else:
            index = client.Index(name=settings.pinecone_index_name)
        return cls(
            index,
            index_name=settings.pinecone_index_name,
            index_host=settings.pinecone_index_host,
            namespace=settings.search_namespace,
        )

    def search(self, query: str, limit: int = DEFAULT_LIMIT) -> List[Dict[str, Any]]:
        """Return raw hits (``_id``, ``_score``, ``fields``) in ranking order."""
        response = self.index.search(
            namespace=self.namespace,
            query={"inputs": {"text": query.strip()}, "top_k": int(limit)},
            fields=SEARCH_FIELDS,
        )
        result = _as_dict(response).get("result") or {}
        hits = [_as_dict(hit) for hit in (_as_dict(result).get("hits") or [])]
        logger.info(f"Search for {query.strip()!r} returned {len(hits)} hits")
        return hits

    def snippets(self, query: str, limit: int = DEFAULT_LIMIT) -> List[Dict[str, Any]]:
        results = []
        for hit in self.search(query, limit):
            hit_id = _hit_id(hit)
            if not hit_id:
                continue
            fields = hit.get("fields") or {}
            results.append(
                {
                    "id": hit_id,
                    "title": fields.get("document_title") or "Unknown Title",
                    "author": fields.get("author") or "",
                    "snippet": fields.get("chunk_text") or "",
                    "score": _hit_score(hit),
                }
            )
        return results

    def books(self, query: str, limit: int = DEFAULT_LIMIT) -> List[Dict[str, Any]]:
        # Prices are looked up from the catalog by the storefront afterwards
        results = []
        for hit in self.search(query, limit):
            hit_id = _hit_id(hit)
            if not hit_id:
                continue
            fields = hit.get("fields") or {}
            results.append(
                {
                    "id": hit_id,
                    "name": fields.get("document_title") or "Unknown Title",
                    "description": fields.get("summary") or fields.get("chunk_text") or "No description available",
                    "author": fields.get("author") or "",
                    "price": 0,
                    "currency": "USD",
                    "searchScore": _hit_score(hit),
                    "searchSnippet": fields.get("chunk_text") or "",
                }
            )
        return results

    def status(self) -> Dict[str, Any]:
        """Describe the index. Raises whatever the SDK raises when unreachable."""
        stats = _as_dict(self.index.describe_index_stats())
        namespaces = {
            name: _as_dict(summary) for name, summary in (stats.get("namespaces") or {}).items()
        }
        return {
            "status": "ready",
            "indexName": self.index_name,
            "indexHost": self.index_host,
            "totalVectors": stats.get("total_vector_count", stats.get("totalRecordCount", 0)),
            "dimension": stats.get("dimension"),
            "namespaces": namespaces,
        }
