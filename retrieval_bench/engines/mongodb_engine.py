"""
MongoDB Atlas search engine: $vectorSearch for vectors and $search (Lucene BM25) for text.
"""

import logging
import time
import uuid
from typing import Any, Dict, List, Optional, Sequence

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import OperationFailure
from pymongo.operations import SearchIndexModel

from retrieval_bench.packages.evaluation_framework import (
    Document,
    DocumentId,
    Embedding,
    QueryText,
    SearchEngine,
    SearchResult,
)
from retrieval_bench.packages.mongodb_client import MongoDBClient

logger = logging.getLogger(__name__)

VECTOR_INDEX = "default_vector"
TEXT_INDEX = "default_text"


class MongoDBEngine(SearchEngine):
    """Atlas collection with one vector search index and one text search index.

    Each instance writes to its own scratch collection, dropped on cleanup.
    """

    name = "MongoDB Atlas Search"

    def __init__(
        self,
        mongodb_client: MongoDBClient,
        database_name: str,
        dimensions: int,
        index_timeout: float = 300.0,
        poll_interval: float = 2.0,
        **kwargs
    ):
        super().__init__(**kwargs)
        self.mongodb_client = mongodb_client
        self.database_name = database_name
        self.dimensions = dimensions
        self.index_timeout = index_timeout
        self.poll_interval = poll_interval
        self.collection_name = f"bench_{uuid.uuid4().hex[:8]}"
        self.client: Optional[MongoClient] = None
        self.collection: Optional[Collection] = None

    def _index(self, documents: Sequence[Document], embeddings: Sequence[Embedding]) -> None:
        self.client = self.mongodb_client.get_client()
        self.collection = self.client[self.database_name][self.collection_name]

        self.collection.insert_many([
            {"id": doc.id, "text": doc.text, "embeddings": list(embedding)}
            for doc, embedding in zip(documents, embeddings)
        ])

        self.collection.create_search_indexes([
            SearchIndexModel(
                definition={
                    "fields": [{
                        "type": "vector",
                        "path": "embeddings",
                        "numDimensions": self.dimensions,
                        "similarity": "cosine",
                    }]
                },
                name=VECTOR_INDEX,
                type="vectorSearch",
            ),
            SearchIndexModel(
                definition={"mappings": {"dynamic": False,
                                         "fields": {"text": {"type": "string"}}}},
                name=TEXT_INDEX,
                type="search",
            ),
        ])
        self._wait_for_indexes()
        logger.info(f"Indexed {len(documents)} documents into {self.collection_name}")

    def _wait_for_indexes(self) -> None:
        """Atlas builds search indexes asynchronously; block until both are queryable."""
        deadline = time.monotonic() + self.index_timeout

        while True:
            queryable = {
                index["name"]: index.get("queryable", False)
                for index in self.collection.list_search_indexes()
            }
            if queryable.get(VECTOR_INDEX) and queryable.get(TEXT_INDEX):
                return
            if time.monotonic() > deadline:
                raise TimeoutError(
                    f"Search indexes not queryable after {self.index_timeout}s: {queryable}")
            time.sleep(self.poll_interval)

    def _search_vector(self, query_embedding: Embedding, top_k: int) -> List[SearchResult]:
        pipeline = [
            {
                "$vectorSearch": {
                    "index": VECTOR_INDEX,
                    "path": "embeddings",
                    "queryVector": list(query_embedding),
                    # numCandidates is typically 10-20x the limit
                    "numCandidates": top_k * 10,
                    "limit": top_k
                }
            },
            {
                "$project": {
                    "_id": 0,
                    "id": 1,
                    "score": {"$meta": "vectorSearchScore"}
                }
            }
        ]

        return self._to_results(self.collection.aggregate(pipeline))

    def _search_fts(self, query_text: QueryText, top_k: int) -> List[SearchResult]:
        pipeline = [
            {
                "$search": {
                    "index": TEXT_INDEX,
                    "text": {
                        "query": query_text,
                        "path": "text",
                        "fuzzy": {
                            "prefixLength": 1,
                            "maxEdits": 2,
                            "maxExpansions": 100
                        }
                    }
                }
            },
            {"$limit": top_k},
            {
                "$project": {
                    "_id": 0,
                    "id": 1,
                    "score": {"$meta": "searchScore"}
                }
            }
        ]

        try:
            return self._to_results(self.collection.aggregate(pipeline))
        except OperationFailure as e:
            logger.warning(f"Atlas text search unavailable for query '{query_text}': {e}")
            return []

    def _to_results(self, docs) -> List[SearchResult]:
        results: List[Dict[str, Any]] = list(docs)
        return [SearchResult(doc_id=DocumentId(doc["id"]), score=doc.get("score", 0.0))
                for doc in results]

    def _release(self) -> None:
        try:
            if self.collection is not None:
                # Dropping the collection also drops its search indexes
                self.collection.drop()
        finally:
            if self.client is not None:
                self.client.close()
            self.collection = None
            self.client = None
